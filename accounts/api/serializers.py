from django.contrib.auth import get_user_model
from rest_framework import serializers

from accounts.models import Coupon
from accounts.services.signup_service import SIGNUP_ROLES

User = get_user_model()


class SignupSerializer(serializers.Serializer):
    """Input for creating an account."""
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True)
    name = serializers.CharField(max_length=150)
    role = serializers.ChoiceField(choices=SIGNUP_ROLES, default='user')


class ProfileSerializer(serializers.ModelSerializer):
    """Profile as its owner sees it."""

    class Meta:
        model = User
        fields = [
            'id', 'email', 'name', 'role', 'is_subscribed', 'subscription_plan',
            'points', 'commission_earned', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Fields a user may change on their own profile."""

    class Meta:
        model = User
        fields = ['name']


class CouponSerializer(serializers.ModelSerializer):
    times_used = serializers.IntegerField(source='get_times_used', read_only=True)
    total_revenue = serializers.DecimalField(
        source='get_total_revenue', max_digits=10, decimal_places=2, read_only=True
    )

    class Meta:
        model = Coupon
        fields = ['id', 'code', 'percent_off', 'active', 'times_used', 'total_revenue', 'created_at']
        read_only_fields = fields


class AdminUserSerializer(serializers.ModelSerializer):
    """User row for admin listings."""
    letter_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'name', 'role', 'is_subscribed', 'subscription_plan',
            'letter_count', 'created_at',
        ]
        read_only_fields = fields


class AdminEmployeeSerializer(serializers.ModelSerializer):
    """Employee row for admin listings."""
    coupon_code = serializers.SerializerMethodField()
    referral_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'name', 'coupon_code', 'points', 'commission_earned',
            'referral_count', 'created_at',
        ]
        read_only_fields = fields

    def get_coupon_code(self, obj):
        coupon = obj.get_coupon()
        return coupon.code if coupon else None
