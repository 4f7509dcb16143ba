"""Tests for checkout session initiation and coupon preview."""

from unittest.mock import patch

import pytest
import stripe
from django.contrib.auth.models import AnonymousUser
from django.urls import reverse

from billing.models import Subscription, Transaction
from billing.services.checkout_service import CheckoutService, validate_coupon
from billing.services.stripe_gateway import StripeGateway
from common.exceptions import (
    InvalidCouponError,
    InvalidPlanError,
    PaymentProviderError,
    UnauthorizedError,
)


@pytest.mark.django_db
class TestCheckoutService:

    def test_plain_checkout(self, user, mock_gateway):
        result = CheckoutService(gateway=mock_gateway).create_session(user, 'one_letter')

        assert result == {
            'session_id': 'cs_test_123',
            'redirect_url': 'https://checkout.stripe.com/c/pay/cs_test_123',
            'amount_cents': 29900,
            'discount_cents': 0,
        }
        params = mock_gateway.create_checkout_session.call_args.kwargs
        assert params['mode'] == 'payment'
        assert params['customer_email'] == user.email
        assert params['metadata'] == {'user_id': str(user.id), 'plan': 'one_letter'}
        assert params['success_url'] == 'https://app.test/dashboard?success=true'
        assert params['cancel_url'] == 'https://app.test/dashboard?cancelled=true'
        price_data = params['line_items'][0]['price_data']
        assert price_data['unit_amount'] == 29900
        assert 'recurring' not in price_data

    def test_coupon_checkout_discounts_once(self, user, employee, mock_gateway):
        result = CheckoutService(gateway=mock_gateway).create_session(
            user, 'one_letter', coupon_code='save20janedo'
        )

        assert result['amount_cents'] == 23920
        assert result['discount_cents'] == 5980
        params = mock_gateway.create_checkout_session.call_args.kwargs
        assert params['line_items'][0]['price_data']['unit_amount'] == 23920
        assert 'discounts' not in params
        assert params['metadata'] == {
            'user_id': str(user.id),
            'plan': 'one_letter',
            'coupon_code': 'SAVE20JANEDO',
            'employee_id': str(employee.id),
        }

    def test_recurring_plan(self, user, mock_gateway):
        CheckoutService(gateway=mock_gateway).create_session(user, 'eight_letters')

        params = mock_gateway.create_checkout_session.call_args.kwargs
        assert params['mode'] == 'subscription'
        assert params['line_items'][0]['price_data']['recurring'] == {'interval': 'year'}

    def test_custom_return_urls(self, user, mock_gateway):
        CheckoutService(gateway=mock_gateway).create_session(
            user, 'one_letter',
            success_url='https://example.com/ok',
            cancel_url='https://example.com/no',
        )

        params = mock_gateway.create_checkout_session.call_args.kwargs
        assert params['success_url'] == 'https://example.com/ok'
        assert params['cancel_url'] == 'https://example.com/no'

    def test_unknown_plan(self, user, mock_gateway):
        with pytest.raises(InvalidPlanError):
            CheckoutService(gateway=mock_gateway).create_session(user, 'ten_letters')
        mock_gateway.create_checkout_session.assert_not_called()

    def test_inactive_coupon(self, user, employee, mock_gateway):
        employee.coupons.update(active=False)

        with pytest.raises(InvalidCouponError):
            CheckoutService(gateway=mock_gateway).create_session(
                user, 'one_letter', coupon_code='SAVE20JANEDO'
            )
        mock_gateway.create_checkout_session.assert_not_called()

    def test_own_coupon_rejected(self, employee, mock_gateway):
        with pytest.raises(InvalidCouponError) as exc_info:
            CheckoutService(gateway=mock_gateway).create_session(
                employee, 'one_letter', coupon_code='SAVE20JANEDO'
            )
        assert 'own referral code' in exc_info.value.message

    def test_anonymous_rejected(self, mock_gateway):
        with pytest.raises(UnauthorizedError):
            CheckoutService(gateway=mock_gateway).create_session(AnonymousUser(), 'one_letter')

    def test_nothing_persisted(self, user, employee, mock_gateway):
        CheckoutService(gateway=mock_gateway).create_session(
            user, 'four_letters', coupon_code='SAVE20JANEDO'
        )
        assert Subscription.objects.count() == 0
        assert Transaction.objects.count() == 0


@pytest.mark.django_db
class TestValidateCoupon:

    def test_preview(self, user, employee):
        result = validate_coupon('SAVE20JANEDO', 'eight_letters', user=user)

        assert result['valid'] is True
        assert result['discount_cents'] == 11980
        assert result['final_price_cents'] == 47920

    def test_unknown_code(self, user):
        with pytest.raises(InvalidCouponError):
            validate_coupon('NOPE', 'one_letter', user=user)


class TestStripeGateway:

    def test_missing_key(self):
        with pytest.raises(PaymentProviderError):
            StripeGateway(api_key='').create_checkout_session(mode='payment')

    def test_stripe_error_wrapped(self):
        error = stripe.InvalidRequestError('bad', param='line_items')
        with patch('billing.services.stripe_gateway.stripe.checkout.Session.create', side_effect=error):
            with pytest.raises(PaymentProviderError):
                StripeGateway(api_key='sk_test_x').create_checkout_session(mode='payment')

    def test_passes_api_key(self):
        with patch('billing.services.stripe_gateway.stripe.checkout.Session.create') as create:
            StripeGateway(api_key='sk_test_x').create_checkout_session(mode='payment')
        create.assert_called_once_with(api_key='sk_test_x', mode='payment')


@pytest.mark.django_db
class TestCheckoutAPI:

    def test_create_session(self, auth_client, employee, mock_gateway):
        with patch('billing.api.views.get_checkout_service', return_value=CheckoutService(gateway=mock_gateway)):
            response = auth_client.post(reverse('billing_api:checkout'), {
                'plan': 'one_letter',
                'couponCode': 'SAVE20JANEDO',
            }, format='json')

        assert response.status_code == 200
        assert response.data['sessionId'] == 'cs_test_123'
        assert response.data['url'].startswith('https://checkout.stripe.com/')
        assert response.data['amountCents'] == 23920

    def test_invalid_plan_is_400(self, auth_client, mock_gateway):
        with patch('billing.api.views.get_checkout_service', return_value=CheckoutService(gateway=mock_gateway)):
            response = auth_client.post(reverse('billing_api:checkout'), {'plan': 'bogus'}, format='json')

        assert response.status_code == 400
        assert response.data == {'error': 'Invalid plan selected'}

    def test_requires_auth(self, api_client):
        response = api_client.post(reverse('billing_api:checkout'), {'plan': 'one_letter'}, format='json')
        assert response.status_code == 401

    def test_coupon_validate_endpoint(self, auth_client, employee):
        response = auth_client.get(
            reverse('billing_api:coupon_validate'), {'code': 'SAVE20JANEDO', 'plan': 'one_letter'}
        )

        assert response.status_code == 200
        assert response.data['final_price_cents'] == 23920

    def test_coupon_validate_invalid(self, auth_client):
        response = auth_client.get(reverse('billing_api:coupon_validate'), {'code': 'NOPE'})

        assert response.data == {'valid': False, 'error': 'Invalid or inactive coupon code'}

    def test_plan_list(self, auth_client):
        response = auth_client.get(reverse('billing_api:plan_list'))

        keys = [plan['key'] for plan in response.data['plans']]
        assert keys == ['one_letter', 'four_letters', 'eight_letters']

    def test_my_billing(self, auth_client, user):
        Subscription.objects.create(user=user, plan='four_letters', stripe_session_id='cs_a')
        user.refresh_subscription_state()

        response = auth_client.get(reverse('billing_api:my_billing'))

        assert response.status_code == 200
        assert response.data['is_subscribed'] is True
        assert response.data['subscription_plan'] == 'four_letters'
        assert [s['plan'] for s in response.data['subscriptions']] == ['four_letters']
        assert response.data['transactions'] == []
