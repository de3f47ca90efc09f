# backend/activity_booking/services/payment_orchestrator.py
"""
Sequencing of the payment gateway calls for a single booking charge.

customer -> card token -> attach card -> charge. Every failure is folded into
a ``ChargeOutcome``; ``charge`` never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
import logging
from typing import Any, Dict, Mapping, Optional

from ..core.enums import PaymentRecordStatus
from ..core.exceptions import PaymentGatewayError
from .payment_gateway import StripeGatewayService
from .pricing_service import amount_to_minor_units

logger = logging.getLogger(__name__)

CHARGE_SUCCEEDED = "succeeded"


@dataclass(frozen=True)
class ChargeOutcome:
    status: PaymentRecordStatus
    reference: Optional[str] = None
    failure_reason: Optional[str] = None
    customer_id: Optional[str] = None
    card_id: Optional[str] = None

    @property
    def paid(self) -> bool:
        return self.status == PaymentRecordStatus.PAID


class PaymentOrchestrator:
    """Runs one charge attempt against the gateway. No retries."""

    def __init__(self, gateway: StripeGatewayService, *, currency: Optional[str] = None):
        self.gateway = gateway
        self.currency = currency
        self.logger = logging.getLogger(__name__)

    def charge(
        self,
        payment_details: Any,
        amount: Decimal,
        description: str,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> ChargeOutcome:
        """
        Charge ``amount`` using the payer described by ``payment_details``.

        ``payment_details`` needs ``first_name``, ``last_name`` and ``email``;
        ``customer_id``, ``card_id`` and ``card`` are optional and skip the
        matching gateway step when already known.
        """
        customer_id = getattr(payment_details, "customer_id", None)
        card_id = getattr(payment_details, "card_id", None)

        try:
            minor_units = amount_to_minor_units(amount)
            if minor_units == 0:
                self.logger.info(f"Nothing to charge for '{description}'; settling as paid")
                return ChargeOutcome(
                    status=PaymentRecordStatus.PAID, customer_id=customer_id, card_id=card_id
                )

            if not customer_id:
                customer_id = self._create_customer(payment_details)
            if not card_id:
                card_id = self._attach_card(customer_id, payment_details)

            result = self.gateway.create_charge(
                amount=minor_units,
                customer_id=customer_id,
                card_id=card_id,
                currency=self.currency,
                description=description,
                metadata=metadata,
            )
            if not result.get("success"):
                raise PaymentGatewayError(result.get("msg") or "Charge failed", step="charge")
            if result.get("status") != CHARGE_SUCCEEDED:
                raise PaymentGatewayError(
                    result.get("failure_message")
                    or f"Charge status is {result.get('status')}",
                    step="charge",
                )

            self.logger.info(f"Charge {result.get('charge_id')} succeeded for '{description}'")
            return ChargeOutcome(
                status=PaymentRecordStatus.PAID,
                reference=result.get("charge_id"),
                customer_id=customer_id,
                card_id=card_id,
            )
        except PaymentGatewayError as exc:
            self.logger.warning(f"Payment failed at {exc.step}: {exc.message}")
            return self._failed(exc.message, customer_id, card_id)
        except Exception as exc:
            self.logger.error(f"Unexpected payment gateway error: {exc}", exc_info=True)
            return self._failed(str(exc) or exc.__class__.__name__, customer_id, card_id)

    def _create_customer(self, payment_details: Any) -> str:
        name = " ".join(
            part
            for part in (
                getattr(payment_details, "first_name", None),
                getattr(payment_details, "last_name", None),
            )
            if part
        )
        result = self.gateway.create_customer(name=name, email=getattr(payment_details, "email", None))
        if not result.get("success"):
            raise PaymentGatewayError(
                result.get("msg") or "Customer creation failed", step="create_customer"
            )
        return result["customer_id"]

    def _attach_card(self, customer_id: str, payment_details: Any) -> str:
        card = _card_payload(getattr(payment_details, "card", None))
        token = self.gateway.create_card_token(card)
        if not token.get("success"):
            raise PaymentGatewayError(
                token.get("msg") or "Card tokenization failed", step="create_card_token"
            )
        attached = self.gateway.add_new_card(customer_id, token["token_id"])
        if not attached.get("success"):
            raise PaymentGatewayError(
                attached.get("msg") or "Adding card failed", step="add_new_card"
            )
        return attached["card_id"]

    @staticmethod
    def _failed(
        reason: str, customer_id: Optional[str], card_id: Optional[str]
    ) -> ChargeOutcome:
        return ChargeOutcome(
            status=PaymentRecordStatus.FAILED,
            failure_reason=reason,
            customer_id=customer_id,
            card_id=card_id,
        )


def _card_payload(card: Any) -> Optional[Dict[str, Any]]:
    if card is None:
        return None
    if hasattr(card, "model_dump"):
        return card.model_dump()
    return dict(card)
