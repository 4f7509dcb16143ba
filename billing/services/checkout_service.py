"""
Checkout session initiation.

Nothing is written locally here: a checkout session may never complete,
so all persistence waits for the webhook. The session metadata is the
only thing the webhook will see of this request.
"""
import logging

from django.conf import settings

from common.exceptions import InvalidCouponError, InvalidPlanError, UnauthorizedError
from billing.plans import compute_charge, compute_discount, get_plan
from .stripe_gateway import StripeGateway


logger = logging.getLogger(__name__)


def normalize_coupon_code(code):
    return (code or '').strip().upper()


def find_active_coupon(code, user=None):
    """
    Return the active Coupon for ``code``.

    Raises InvalidCouponError if it does not exist, is inactive, or belongs
    to ``user`` (employees cannot redeem their own code).
    """
    from accounts.models import Coupon

    code = normalize_coupon_code(code)
    coupon = Coupon.objects.select_related('employee').filter(code=code, active=True).first()
    if coupon is None:
        raise InvalidCouponError()
    if user is not None and coupon.employee_id == user.id:
        raise InvalidCouponError('You cannot use your own referral code.')
    return coupon


def validate_coupon(code, plan_key, user=None) -> dict:
    """Preview a coupon against a plan without contacting Stripe."""
    plan = get_plan(plan_key)
    if plan is None:
        raise InvalidPlanError()
    coupon = find_active_coupon(code, user=user)
    return {
        'valid': True,
        'code': coupon.code,
        'percent_off': coupon.percent_off,
        'price_cents': plan.price_cents,
        'discount_cents': compute_discount(plan.price_cents, coupon.percent_off),
        'final_price_cents': compute_charge(plan.price_cents, coupon.percent_off),
    }


class CheckoutService:
    """Validates a purchase request and opens a Stripe checkout session."""

    def __init__(self, gateway=None):
        self.gateway = gateway or StripeGateway()

    def create_session(self, user, plan_key, coupon_code=None, success_url=None, cancel_url=None) -> dict:
        """
        Open a checkout session for ``plan_key``.

        Returns a dict with ``session_id`` and ``redirect_url`` plus the
        computed ``amount_cents`` / ``discount_cents``.
        """
        if user is None or not user.is_authenticated:
            raise UnauthorizedError()

        plan = get_plan(plan_key)
        if plan is None:
            raise InvalidPlanError()

        coupon = None
        discount_cents = 0
        if coupon_code:
            coupon = find_active_coupon(coupon_code, user=user)
            discount_cents = compute_discount(plan.price_cents, coupon.percent_off)

        # The discount is applied once, here, by lowering the unit amount
        amount_cents = max(plan.price_cents - discount_cents, 0)

        price_data = {
            'currency': 'usd',
            'product_data': {
                'name': plan.name,
                'description': plan.description,
            },
            'unit_amount': amount_cents,
        }
        if plan.is_recurring:
            price_data['recurring'] = {'interval': plan.interval}

        metadata = {
            'user_id': str(user.id),
            'plan': plan.key,
        }
        if coupon:
            metadata['coupon_code'] = coupon.code
            metadata['employee_id'] = str(coupon.employee_id)

        session = self.gateway.create_checkout_session(
            payment_method_types=['card'],
            mode=plan.mode,
            line_items=[{
                'price_data': price_data,
                'quantity': 1,
            }],
            success_url=success_url or settings.CHECKOUT_SUCCESS_URL,
            cancel_url=cancel_url or settings.CHECKOUT_CANCEL_URL,
            customer_email=user.email,
            metadata=metadata,
        )

        logger.info(
            f'Checkout session {session.id} created for user {user.id}: '
            f'plan={plan.key} amount={amount_cents} coupon={coupon.code if coupon else "-"}'
        )

        return {
            'session_id': session.id,
            'redirect_url': session.url,
            'amount_cents': amount_cents,
            'discount_cents': discount_cents,
        }
