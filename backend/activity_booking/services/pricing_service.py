# backend/activity_booking/services/pricing_service.py
"""Plan pricing and discount validation for booking requests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.enums import DiscountValueType, ProductType
from ..core.exceptions import (
    DiscountExpiredError,
    DiscountNotApplicableError,
    DiscountNotYetActiveError,
    DiscountUsageExceededError,
    InvalidDiscountError,
    InvalidPlanError,
    ValidationException,
)
from ..models.discount import Discount
from ..repositories.discount_repository import DiscountRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.payment_repository import PaymentRepository
from .base import BaseService

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """Coerce a numeric value to a two-place Decimal, rounding half up."""
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def amount_to_minor_units(amount: Decimal) -> int:
    """Convert a currency amount to integer cents for the payment gateway."""
    cents = (to_money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP)
    if cents < 0:
        raise ValidationException(
            "Charge amount must be non-negative",
            code="NEGATIVE_AMOUNT",
            details={"amount": str(amount)},
        )
    return int(cents)


@dataclass(frozen=True)
class PriceQuote:
    """Result of pricing a booking request."""

    base_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    discount: Optional[Discount] = None

    @property
    def discount_applied(self) -> bool:
        return self.discount is not None


class PricingService(BaseService):
    """Compute base, discount and final amounts. Never writes."""

    def __init__(
        self,
        db: Session,
        payment_repository: Optional[PaymentRepository] = None,
        discount_repository: Optional[DiscountRepository] = None,
    ) -> None:
        super().__init__(db)
        self.payment_repository = payment_repository or RepositoryFactory.create_payment_repository(
            db
        )
        self.discount_repository = (
            discount_repository or RepositoryFactory.create_discount_repository(db)
        )

    @BaseService.measure_operation("pricing.quote")
    def quote(
        self,
        product: ProductType,
        plan_id: Optional[str] = None,
        discount_id: Optional[str] = None,
        students: Optional[Sequence[Any]] = None,
        *,
        discount_target: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PriceQuote:
        """
        Price a booking request.

        Args:
            product: Product being booked
            plan_id: Optional payment plan; base price is zero without one
            discount_id: Optional discount to validate and apply
            students: Requested students; the first one identifies the customer
                for per-customer discount limits
            discount_target: Target tag the discount must list (defaults to the
                product value)
            now: Evaluation time for the discount window

        Raises:
            InvalidPlanError, InvalidDiscountError, DiscountNotYetActiveError,
            DiscountExpiredError, DiscountNotApplicableError,
            DiscountUsageExceededError
        """
        base_amount = self._resolve_base_amount(product, plan_id)

        if not discount_id:
            return PriceQuote(
                base_amount=base_amount, discount_amount=ZERO, final_amount=base_amount
            )

        discount = self.discount_repository.get_with_targets(discount_id)
        if discount is None:
            raise InvalidDiscountError(discount_id)

        self._validate_discount(
            discount,
            target=discount_target or product.value,
            students=students or [],
            now=now or datetime.now(timezone.utc),
        )

        discount_amount = self.compute_discount(
            base_amount, discount.value_type, discount.value
        )
        final_amount = max(base_amount - discount_amount, ZERO)
        self.logger.debug(
            f"Quoted {product.value}: base={base_amount} discount={discount_amount} "
            f"final={final_amount} code={discount.code}"
        )
        return PriceQuote(
            base_amount=base_amount,
            discount_amount=discount_amount,
            final_amount=final_amount,
            discount=discount,
        )

    @staticmethod
    def compute_discount(base_amount: Decimal, value_type: Any, value: Any) -> Decimal:
        """Percentage discounts are a share of the base; fixed ones are the value itself."""
        if DiscountValueType(value_type) == DiscountValueType.PERCENTAGE:
            return to_money(to_money(base_amount) * Decimal(str(value)) / Decimal("100"))
        return to_money(value)

    def _resolve_base_amount(self, product: ProductType, plan_id: Optional[str]) -> Decimal:
        if not plan_id:
            return ZERO
        plan = self.payment_repository.get_plan(plan_id)
        if plan is None:
            raise InvalidPlanError(plan_id)
        if plan.product_type is not None and plan.product_type != product:
            self.logger.info(
                f"Payment plan {plan_id} belongs to {plan.product_type}, not {product.value}"
            )
            raise InvalidPlanError(plan_id)
        return to_money(plan.price)

    def _validate_discount(
        self,
        discount: Discount,
        *,
        target: str,
        students: Sequence[Any],
        now: datetime,
    ) -> None:
        starts_at = discount.starts_at
        ends_at = discount.ends_at
        if starts_at is not None and now < starts_at:
            raise DiscountNotYetActiveError(discount.code, starts_at)
        if ends_at is not None and now > ends_at:
            raise DiscountExpiredError(discount.code, ends_at)

        if target not in discount.target_tags:
            raise DiscountNotApplicableError(discount.code, target)

        if discount.limit_total_uses is not None:
            used = self.discount_repository.count_usages(discount.id)
            if used >= discount.limit_total_uses:
                raise DiscountUsageExceededError(discount.code, discount.limit_total_uses, used)

        if discount.limit_per_customer is not None and students:
            first = students[0]
            first_name = getattr(first, "first_name", None)
            if first_name:
                used_by_student = self.discount_repository.count_usages_for_student(
                    discount.id,
                    first_name,
                    getattr(first, "last_name", None),
                    _as_date(getattr(first, "date_of_birth", None)),
                )
                if used_by_student >= discount.limit_per_customer:
                    raise DiscountUsageExceededError(
                        discount.code,
                        discount.limit_per_customer,
                        used_by_student,
                        per_customer=True,
                    )


def _as_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))
