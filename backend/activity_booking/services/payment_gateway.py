# backend/activity_booking/services/payment_gateway.py
"""
Stripe adapter for booking payments.

Each call returns a plain dict: ``{"success": True, ...}`` on success or
``{"success": False, "msg": <reason>}`` when Stripe rejects the request or
the service is not configured. Callers never need to catch Stripe errors.
"""

import logging
from typing import Any, Dict, Mapping, Optional

import stripe

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import ServiceException

logger = logging.getLogger(__name__)


class StripeGatewayService:
    """Customer, card and charge operations against the Stripe API."""

    def __init__(self, config: Optional[Settings] = None):
        self.settings = config or default_settings
        self.logger = logging.getLogger(__name__)
        self.currency = self.settings.stripe_currency
        self.stripe_configured = False

        if self.settings.stripe_configured:
            stripe.api_key = self.settings.stripe_secret_key.get_secret_value()
            # Single attempt per request
            stripe.default_http_client = stripe.RequestsClient(
                timeout=self.settings.payment_gateway_timeout_seconds
            )
            stripe.max_network_retries = 0
            self.stripe_configured = True
            self.logger.info("Stripe gateway configured")
        else:
            self.logger.warning(
                "Stripe secret key not configured - payment gateway calls will fail"
            )

    def _check_stripe_configured(self) -> None:
        if not self.stripe_configured:
            raise ServiceException(
                "Stripe service not configured. Please check STRIPE_SECRET_KEY environment variable.",
                code="PAYMENT_GATEWAY_NOT_CONFIGURED",
            )

    @staticmethod
    def _failure(message: str) -> Dict[str, Any]:
        return {"success": False, "msg": message}

    def _error_message(self, operation: str, exc: Exception) -> str:
        message = getattr(exc, "user_message", None) or str(exc) or exc.__class__.__name__
        self.logger.error(f"Stripe {operation} failed: {message}")
        return message

    def create_customer(self, name: str, email: Optional[str]) -> Dict[str, Any]:
        try:
            self._check_stripe_configured()
            customer = stripe.Customer.create(name=name, email=email)
            return {"success": True, "customer_id": customer["id"]}
        except ServiceException as exc:
            return self._failure(exc.message)
        except stripe.StripeError as exc:
            return self._failure(self._error_message("customer creation", exc))

    def create_card_token(self, card: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        Tokenize raw card details.

        Without card details, non-production environments get the configured
        sandbox token so test bookings can be charged.
        """
        if not card:
            if self.settings.is_production:
                return self._failure("Card details are required")
            return {"success": True, "token_id": self.settings.sandbox_card_token}

        try:
            self._check_stripe_configured()
            token = stripe.Token.create(
                card={
                    "number": card.get("number"),
                    "exp_month": card.get("exp_month"),
                    "exp_year": card.get("exp_year"),
                    "cvc": card.get("cvc"),
                }
            )
            return {"success": True, "token_id": token["id"]}
        except ServiceException as exc:
            return self._failure(exc.message)
        except stripe.StripeError as exc:
            return self._failure(self._error_message("card tokenization", exc))

    def add_new_card(self, customer_id: str, card_token: str) -> Dict[str, Any]:
        try:
            self._check_stripe_configured()
            card = stripe.Customer.create_source(customer_id, source=card_token)
            return {
                "success": True,
                "card_id": card["id"],
                "brand": card.get("brand"),
                "last4": card.get("last4"),
                "exp_month": card.get("exp_month"),
                "exp_year": card.get("exp_year"),
            }
        except ServiceException as exc:
            return self._failure(exc.message)
        except stripe.StripeError as exc:
            return self._failure(self._error_message("card attachment", exc))

    def create_charge(
        self,
        *,
        amount: int,
        customer_id: str,
        card_id: str,
        currency: Optional[str] = None,
        description: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Charge ``amount`` minor units to a stored card.

        Returns the Stripe charge status; only ``succeeded`` means money moved.
        """
        try:
            self._check_stripe_configured()
            charge = stripe.Charge.create(
                amount=amount,
                currency=currency or self.currency,
                customer=customer_id,
                source=card_id,
                description=description,
                metadata={key: str(value) for key, value in (metadata or {}).items()},
            )
            return {
                "success": True,
                "status": charge["status"],
                "charge_id": charge["id"],
                "failure_message": charge.get("failure_message"),
            }
        except ServiceException as exc:
            return self._failure(exc.message)
        except stripe.StripeError as exc:
            return self._failure(self._error_message("charge", exc))

    def get_payment_details(self, reference: str) -> Any:
        """
        Retrieve a charge by id.

        Raises:
            ServiceException: If Stripe is not configured or the lookup fails
        """
        self._check_stripe_configured()
        try:
            return stripe.Charge.retrieve(reference)
        except stripe.StripeError as exc:
            message = self._error_message("charge lookup", exc)
            raise ServiceException(
                f"Failed to retrieve payment {reference}: {message}",
                code="PAYMENT_LOOKUP_FAILED",
                details={"reference": reference},
            ) from exc
