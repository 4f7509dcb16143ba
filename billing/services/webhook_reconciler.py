"""
Stripe webhook reconciliation.

Stripe delivers events at least once and in no guaranteed order. Each
event is handled inside one database transaction that first claims the
event id in ProcessedWebhookEvent, so a redelivered event is a no-op and
a failed event leaves nothing behind for the retry to trip over.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.db.models import F
from django.db.transaction import atomic

from common.exceptions import StoreError, ValidationError
from billing.models import CouponUsage, ProcessedWebhookEvent, Subscription, Transaction
from billing.plans import get_plan
from .stripe_gateway import StripeGateway


logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')

RESULT_PROCESSED = 'processed'
RESULT_DUPLICATE = 'duplicate'
RESULT_IGNORED = 'ignored'


def _parse_id(value, field):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid metadata: {field}')


@dataclass
class CheckoutIntent:
    """What the checkout request wanted, as carried in session metadata."""
    user_id: int
    plan: str
    coupon_code: Optional[str] = None
    employee_id: Optional[int] = None

    @classmethod
    def from_metadata(cls, metadata) -> 'CheckoutIntent':
        metadata = metadata or {}
        user_id = metadata.get('user_id')
        plan = metadata.get('plan')
        if not user_id or not plan:
            raise ValidationError('Missing metadata')
        if get_plan(plan) is None:
            raise ValidationError(f'Unknown plan: {plan}')

        employee_id = metadata.get('employee_id')
        return cls(
            user_id=_parse_id(user_id, 'user_id'),
            plan=plan,
            coupon_code=metadata.get('coupon_code') or None,
            employee_id=_parse_id(employee_id, 'employee_id') if employee_id else None,
        )


def commission_for(revenue: Decimal) -> Decimal:
    rate = Decimal(str(settings.REFERRAL_COMMISSION_RATE))
    return (revenue * rate).quantize(CENTS, rounding=ROUND_HALF_UP)


def subscription_ref(obj) -> Optional[str]:
    """Stripe subscription id of an invoice or checkout session (old and new API shapes)."""
    subscription_id = obj.get('subscription')
    if not subscription_id:
        parent = obj.get('parent') or {}
        details = parent.get('subscription_details') or {}
        subscription_id = details.get('subscription')
    if isinstance(subscription_id, dict):
        subscription_id = subscription_id.get('id')
    return subscription_id or None


class WebhookReconciler:
    """Turns verified Stripe events into Subscription/Transaction/referral writes."""

    def __init__(self, gateway=None):
        self.gateway = gateway or StripeGateway()

    def handle(self, payload, sig_header) -> str:
        """Verify the raw request and reconcile the event it carries."""
        event = self.gateway.construct_event(payload, sig_header)
        return self.process_event(event)

    def process_event(self, event) -> str:
        event_id = event.get('id')
        event_type = event.get('type')
        logger.info(f'Webhook event type: {event_type} ({event_id})')

        handler = self.HANDLERS.get(event_type)
        if handler is None:
            logger.info(f'Unhandled event type: {event_type}')
            return RESULT_IGNORED

        if not event_id:
            raise ValidationError('Missing event id')

        obj = (event.get('data') or {}).get('object')
        if not obj:
            raise ValidationError('Missing event object')
        try:
            with atomic():
                _, created = ProcessedWebhookEvent.objects.get_or_create(
                    event_id=event_id,
                    defaults={'event_type': event_type},
                )
                if not created:
                    logger.info(f'Event {event_id} already processed, skipping')
                    return RESULT_DUPLICATE
                return handler(self, obj)
        except DatabaseError:
            logger.exception(f'Database error while reconciling {event_type} ({event_id})')
            raise StoreError()

    # Handlers (run inside the event's transaction)

    def _handle_checkout_completed(self, session) -> str:
        intent = CheckoutIntent.from_metadata(session.get('metadata'))
        session_id = session.get('id')
        if not session_id:
            raise ValidationError('Missing session id')

        if Subscription.objects.filter(stripe_session_id=session_id).exists():
            logger.info(f'Checkout session {session_id} already reconciled, skipping')
            return RESULT_DUPLICATE

        User = get_user_model()
        user = User.objects.filter(pk=intent.user_id).first()
        if user is None:
            raise ValidationError(f'Unknown user: {intent.user_id}')

        amount_cents = session.get('amount_total') or 0
        revenue = (Decimal(amount_cents) / 100).quantize(CENTS)

        subscription = Subscription.objects.create(
            user=user,
            plan=intent.plan,
            price=revenue,
            stripe_session_id=session_id,
            stripe_subscription_id=subscription_ref(session),
            status=Subscription.STATUS_ACTIVE,
        )
        user.refresh_subscription_state()

        coupon = self._resolve_coupon(intent)
        if coupon is None:
            Transaction.objects.create(
                user=user,
                subscription=subscription,
                amount_cents=amount_cents,
                commission_paid=False,
            )
        else:
            commission = commission_for(revenue)
            Transaction.objects.create(
                user=user,
                subscription=subscription,
                amount_cents=amount_cents,
                coupon=coupon,
                employee_id=coupon.employee_id,
                commission_paid=False,
            )
            CouponUsage.objects.create(
                coupon=coupon,
                employee_id=coupon.employee_id,
                user=user,
                subscription=subscription,
                revenue=revenue,
                commission=commission,
            )
            self._credit_employee(coupon.employee_id, commission)

        logger.info(f'Successfully processed checkout session: {session_id}')
        return RESULT_PROCESSED

    def _handle_payment_succeeded(self, invoice) -> str:
        subscription = self._find_subscription(invoice)
        if subscription is None:
            return RESULT_IGNORED
        if subscription.status != Subscription.STATUS_ACTIVE:
            subscription.status = Subscription.STATUS_ACTIVE
            subscription.save(update_fields=['status', 'updated_at'])
        subscription.user.refresh_subscription_state()
        return RESULT_PROCESSED

    def _handle_payment_failed(self, invoice) -> str:
        subscription = self._find_subscription(invoice)
        if subscription is None:
            return RESULT_IGNORED
        subscription.status = Subscription.STATUS_CANCELLED
        subscription.save(update_fields=['status', 'updated_at'])
        subscription.user.refresh_subscription_state()
        logger.info(f'Subscription {subscription.id} cancelled after failed payment')
        return RESULT_PROCESSED

    HANDLERS = {
        'checkout.session.completed': _handle_checkout_completed,
        'invoice.payment_succeeded': _handle_payment_succeeded,
        'invoice.payment_failed': _handle_payment_failed,
    }

    # Helpers

    def _resolve_coupon(self, intent):
        """Re-read the coupon named in the metadata; never trust a client discount."""
        from accounts.models import Coupon

        if not (intent.coupon_code and intent.employee_id):
            return None
        coupon = Coupon.objects.filter(
            code=intent.coupon_code,
            employee_id=intent.employee_id,
        ).first()
        if coupon is None:
            logger.warning(
                f'Coupon {intent.coupon_code} for employee {intent.employee_id} not found; '
                f'recording transaction without referral'
            )
        return coupon

    def _credit_employee(self, employee_id, commission):
        """Add one point and ``commission`` to the employee, as relative updates."""
        from accounts.models import EmployeeMeta

        User = get_user_model()
        User.objects.filter(pk=employee_id).update(
            points=F('points') + 1,
            commission_earned=F('commission_earned') + commission,
        )
        EmployeeMeta.objects.filter(profile_id=employee_id).update(
            points=F('points') + 1,
            commission_earned=F('commission_earned') + commission,
        )

    def _find_subscription(self, invoice):
        subscription_id = subscription_ref(invoice)
        if not subscription_id:
            return None
        subscription = (
            Subscription.objects.select_for_update()
            .select_related('user')
            .filter(stripe_subscription_id=subscription_id)
            .first()
        )
        if subscription is None:
            logger.info(f'No subscription found for {subscription_id}')
        return subscription
