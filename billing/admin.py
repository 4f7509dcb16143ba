from django.contrib import admin
from .models import CouponUsage, ProcessedWebhookEvent, Subscription, Transaction


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    """Admin for checkout-created subscriptions."""

    list_display = ['user', 'plan', 'price', 'status', 'stripe_subscription_id', 'created_at']
    list_filter = ['plan', 'status']
    search_fields = ['user__email', 'stripe_session_id', 'stripe_subscription_id']
    readonly_fields = ['stripe_session_id', 'stripe_subscription_id', 'created_at', 'updated_at']


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['user', 'get_amount', 'coupon', 'employee', 'commission_paid', 'created_at']
    list_filter = ['commission_paid']
    search_fields = ['user__email', 'coupon__code']
    readonly_fields = ['user', 'subscription', 'amount_cents', 'coupon', 'employee', 'created_at']

    def get_amount(self, obj):
        return f"${obj.amount_cents / 100:.2f}"
    get_amount.short_description = 'Amount'


@admin.register(CouponUsage)
class CouponUsageAdmin(admin.ModelAdmin):
    list_display = ['coupon', 'employee', 'user', 'revenue', 'commission', 'created_at']
    search_fields = ['coupon__code', 'user__email', 'employee__email']
    readonly_fields = ['coupon', 'employee', 'user', 'subscription', 'revenue', 'commission', 'created_at']


@admin.register(ProcessedWebhookEvent)
class ProcessedWebhookEventAdmin(admin.ModelAdmin):
    list_display = ['event_id', 'event_type', 'processed_at']
    search_fields = ['event_id']
    list_filter = ['event_type']
