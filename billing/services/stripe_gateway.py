"""
Thin wrapper around the Stripe SDK.

Each gateway carries its own credentials instead of relying on the
module-level ``stripe.api_key``.
"""
import json
import logging

import stripe
from django.conf import settings

from common.exceptions import PaymentProviderError, SignatureVerificationError


logger = logging.getLogger(__name__)


class StripeGateway:
    """Creates checkout sessions and verifies webhook payloads."""

    def __init__(self, api_key=None, webhook_secret=None):
        self.api_key = api_key if api_key is not None else settings.STRIPE_SECRET_KEY
        self.webhook_secret = (
            webhook_secret if webhook_secret is not None else settings.STRIPE_WEBHOOK_SECRET
        )

    def create_checkout_session(self, **params):
        """Create a hosted checkout session. Returns the Stripe session object."""
        if not self.api_key:
            raise PaymentProviderError('Payments are not configured. Please contact support.')
        try:
            return stripe.checkout.Session.create(api_key=self.api_key, **params)
        except stripe.StripeError as e:
            logger.error(f'Stripe error creating checkout session: {str(e)}')
            raise PaymentProviderError(f'Payment error: {e.user_message or "please try again"}')

    def construct_event(self, payload, sig_header):
        """
        Verify ``payload`` against the ``Stripe-Signature`` header and decode it.

        The event comes back as a plain dict.

        Raises SignatureVerificationError for a missing header, a bad
        signature or a payload that is not a Stripe event.
        """
        if not sig_header:
            raise SignatureVerificationError('No signature')
        if not self.webhook_secret:
            logger.error('STRIPE_WEBHOOK_SECRET is not configured')
            raise SignatureVerificationError('Webhook not configured')
        if hasattr(payload, 'decode'):
            payload = payload.decode('utf-8')
        try:
            stripe.WebhookSignature.verify_header(
                payload, sig_header, self.webhook_secret, stripe.Webhook.DEFAULT_TOLERANCE
            )
        except stripe.SignatureVerificationError:
            raise SignatureVerificationError('Invalid signature')
        try:
            event = json.loads(payload)
        except ValueError:
            raise SignatureVerificationError('Invalid payload')
        if not isinstance(event, dict):
            raise SignatureVerificationError('Invalid payload')
        return event
