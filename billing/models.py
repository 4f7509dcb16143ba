from decimal import Decimal

from django.conf import settings
from django.db import models

from .plans import PLAN_CHOICES


class Subscription(models.Model):
    """
    One row per completed checkout.
    Status follows the Stripe invoice lifecycle for recurring plans.
    """

    STATUS_ACTIVE = 'active'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='subscriptions'
    )
    plan = models.CharField(max_length=30, choices=PLAN_CHOICES)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    # Stripe IDs
    stripe_session_id = models.CharField(
        max_length=255,
        unique=True,
        help_text='Stripe Checkout Session ID (cs_xxx)'
    )
    stripe_subscription_id = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        help_text='Stripe Subscription ID (sub_xxx), recurring plans only'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Subscription'
        verbose_name_plural = 'Subscriptions'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user.email} - {self.get_plan_display()} ({self.status})"

    def is_active(self):
        return self.status == self.STATUS_ACTIVE


class Transaction(models.Model):
    """Monetary record of one checkout. Immutable apart from commission_paid."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='transactions'
    )
    subscription = models.OneToOneField(
        Subscription,
        on_delete=models.CASCADE,
        related_name='transaction'
    )
    amount_cents = models.PositiveIntegerField()
    coupon = models.ForeignKey(
        'accounts.Coupon',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transactions'
    )
    employee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='referred_transactions'
    )
    commission_paid = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user.email} - ${self.amount_cents / 100:.2f}"


class CouponUsage(models.Model):
    """One row per coupon redemption, created alongside its Transaction."""

    coupon = models.ForeignKey(
        'accounts.Coupon',
        on_delete=models.CASCADE,
        related_name='usages'
    )
    employee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='coupon_referrals'
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='coupon_usages'
    )
    subscription = models.OneToOneField(
        Subscription,
        on_delete=models.CASCADE,
        related_name='coupon_usage'
    )
    revenue = models.DecimalField(max_digits=10, decimal_places=2)
    commission = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Coupon Usage'
        verbose_name_plural = 'Coupon Usages'

    def __str__(self):
        return f"{self.coupon.code} used by {self.user.email}"


class ProcessedWebhookEvent(models.Model):
    """Stripe event ids that have already been reconciled."""

    event_id = models.CharField(max_length=255, unique=True)
    event_type = models.CharField(max_length=100)
    processed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-processed_at']

    def __str__(self):
        return f"{self.event_type} ({self.event_id})"
