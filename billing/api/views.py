import logging

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from common.exceptions import AppError
from billing.plans import PLANS
from billing.services.checkout_service import CheckoutService, validate_coupon
from billing.services.webhook_reconciler import WebhookReconciler
from .serializers import CheckoutRequestSerializer, SubscriptionSerializer, TransactionSerializer

logger = logging.getLogger(__name__)


def get_checkout_service():
    return CheckoutService()


def get_webhook_reconciler():
    return WebhookReconciler()


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def plan_list(request):
    """The fixed plan table."""
    return Response({
        'plans': [
            {
                'key': plan.key,
                'name': plan.name,
                'description': plan.description,
                'price_cents': plan.price_cents,
                'mode': plan.mode,
                'interval': plan.interval,
            }
            for plan in PLANS.values()
        ],
        'publishable_key': settings.STRIPE_PUBLIC_KEY,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def create_checkout_session(request):
    """Start a Stripe checkout for a plan, optionally with a referral coupon."""
    serializer = CheckoutRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        result = get_checkout_service().create_session(
            request.user,
            data['plan'],
            coupon_code=data.get('couponCode') or None,
            success_url=data.get('successUrl') or None,
            cancel_url=data.get('cancelUrl') or None,
        )
    except AppError as e:
        return Response({'error': e.message}, status=e.status_code)

    return Response({
        'sessionId': result['session_id'],
        'url': result['redirect_url'],
        'amountCents': result['amount_cents'],
        'discountCents': result['discount_cents'],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def coupon_validate(request):
    """Check a coupon against a plan before checkout."""
    code = request.query_params.get('code', '').strip()
    plan = request.query_params.get('plan', 'one_letter')

    if not code:
        return Response({'valid': False, 'error': 'No code provided'})

    try:
        return Response(validate_coupon(code, plan, user=request.user))
    except AppError as e:
        return Response({'valid': False, 'error': e.message})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_billing(request):
    """The caller's subscriptions and transactions."""
    user = request.user
    return Response({
        'is_subscribed': user.is_subscribed,
        'subscription_plan': user.subscription_plan,
        'subscriptions': SubscriptionSerializer(user.subscriptions.all(), many=True).data,
        'transactions': TransactionSerializer(
            user.transactions.select_related('coupon'), many=True
        ).data,
    })


@csrf_exempt
@require_POST
def stripe_webhook(request):
    """Handle Stripe webhook events (signature-verified, no session auth)."""
    payload = request.body
    sig_header = request.META.get('HTTP_STRIPE_SIGNATURE')

    try:
        result = get_webhook_reconciler().handle(payload, sig_header)
    except AppError as e:
        logger.error(f'Webhook rejected ({e.status_code}): {e.message}')
        return JsonResponse({'error': e.message}, status=e.status_code)

    return JsonResponse({'received': True, 'result': result})
