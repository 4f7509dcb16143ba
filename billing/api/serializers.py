from rest_framework import serializers
from billing.models import CouponUsage, Subscription, Transaction


class CheckoutRequestSerializer(serializers.Serializer):
    """Input for opening a checkout session."""
    plan = serializers.CharField(max_length=30)
    couponCode = serializers.CharField(required=False, allow_blank=True, max_length=20)
    successUrl = serializers.URLField(required=False, allow_blank=True)
    cancelUrl = serializers.URLField(required=False, allow_blank=True)


class SubscriptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Subscription
        fields = ['id', 'plan', 'price', 'status', 'created_at', 'updated_at']
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    coupon_code = serializers.CharField(source='coupon.code', read_only=True, default=None)

    class Meta:
        model = Transaction
        fields = ['id', 'subscription', 'amount_cents', 'coupon_code', 'commission_paid', 'created_at']
        read_only_fields = fields


class CouponUsageSerializer(serializers.ModelSerializer):
    """A redemption as the referring employee sees it."""
    user_email = serializers.EmailField(source='user.email', read_only=True)
    plan = serializers.CharField(source='subscription.plan', read_only=True)

    class Meta:
        model = CouponUsage
        fields = ['id', 'user_email', 'plan', 'revenue', 'commission', 'created_at']
        read_only_fields = fields
