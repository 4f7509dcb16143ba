from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth import get_user_model
from .models import Coupon, EmployeeMeta

User = get_user_model()


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin configuration for custom User model."""

    list_display = ('email', 'name', 'role', 'is_subscribed', 'subscription_plan', 'is_staff', 'is_active', 'created_at')
    list_filter = ('role', 'is_subscribed', 'is_staff', 'is_superuser', 'is_active')
    search_fields = ('email', 'name')
    ordering = ('-created_at',)

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Profile', {'fields': ('name', 'role')}),
        ('Subscription', {
            'fields': ('is_subscribed', 'subscription_plan'),
            'description': 'Derived from the subscriptions table. Run sync_subscription_flags to rebuild.'
        }),
        ('Referrals', {'fields': ('points', 'commission_earned')}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Important dates', {'fields': ('last_login',)}),
    )
    readonly_fields = ('is_subscribed', 'subscription_plan', 'points', 'commission_earned')

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'name', 'role', 'password1', 'password2'),
        }),
    )


@admin.register(EmployeeMeta)
class EmployeeMetaAdmin(admin.ModelAdmin):
    list_display = ['profile', 'coupon_code', 'points', 'commission_earned', 'updated_at']
    search_fields = ['profile__email', 'coupon_code']
    readonly_fields = ['points', 'commission_earned', 'created_at', 'updated_at']


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    """Admin for employee referral coupons."""

    list_display = ['code', 'employee', 'percent_off', 'active', 'get_times_used', 'get_total_revenue', 'created_at']
    list_filter = ['active']
    search_fields = ['code', 'employee__email']
    readonly_fields = ['created_at']

    def get_times_used(self, obj):
        return obj.get_times_used()
    get_times_used.short_description = 'Times Used'

    def get_total_revenue(self, obj):
        return f"${obj.get_total_revenue():.2f}"
    get_total_revenue.short_description = 'Revenue'
