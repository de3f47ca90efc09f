# backend/activity_booking/services/booking_products.py
"""
Per-product configuration for the generic booking service.

Each product supplies the discount target tag it matches, whether it draws
from a class-schedule seat pool, and the mappers that turn request parts
into booking, student, parent and emergency-contact columns.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from ..core.enums import ProductType
from ..schemas.booking import (
    BookingCreateRequest,
    EmergencyContactIn,
    ParentIn,
    StudentIn,
)
from .capacity_service import CapacityService

FieldMapper = Callable[[Any], Dict[str, Any]]


def _age_on(date_of_birth: date, today: date) -> int:
    had_birthday = (today.month, today.day) >= (date_of_birth.month, date_of_birth.day)
    return today.year - date_of_birth.year - (0 if had_birthday else 1)


def _student_fields(student: StudentIn) -> Dict[str, Any]:
    return {
        "first_name": student.first_name,
        "last_name": student.last_name,
        "date_of_birth": student.date_of_birth,
        "age": (
            student.age if student.age is not None else _age_on(student.date_of_birth, date.today())
        ),
        "gender": student.gender,
        "medical_information": student.medical_information,
    }


def _parent_fields(parent: ParentIn) -> Dict[str, Any]:
    return {
        "first_name": parent.first_name,
        "last_name": parent.last_name,
        "email": str(parent.email).lower() if parent.email else None,
        "phone_number": parent.phone_number,
        "relation_to_child": parent.relation_to_child,
        "how_did_you_hear": parent.how_did_you_hear,
    }


def _emergency_fields(contact: EmergencyContactIn) -> Dict[str, Any]:
    return {
        "first_name": contact.first_name,
        "last_name": contact.last_name,
        "phone_number": contact.phone_number,
        "relation": contact.relation,
    }


def _birthday_party_fields(request: BookingCreateRequest) -> Dict[str, Any]:
    return {
        "coach_id": request.coach_id,
        "address": request.address,
        "session_date": request.session_date,
        "session_time": request.session_time,
    }


def _one_to_one_fields(request: BookingCreateRequest) -> Dict[str, Any]:
    return {
        "coach_id": request.coach_id,
        "venue_id": request.venue_id,
        "address": request.address,
        "session_date": request.session_date,
        "session_time": request.session_time,
        "area_work_on": request.area_work_on,
    }


def _holiday_camp_fields(request: BookingCreateRequest) -> Dict[str, Any]:
    return {
        "venue_id": request.venue_id,
        "class_schedule_id": request.class_schedule_id,
        "holiday_camp_id": request.holiday_camp_id,
    }


@dataclass(frozen=True)
class ProductConfig:
    product: ProductType
    discount_target: str
    label: str
    booking_fields: FieldMapper
    student_fields: FieldMapper = _student_fields
    parent_fields: FieldMapper = _parent_fields
    emergency_fields: FieldMapper = _emergency_fields
    capacity_factory: Optional[Callable[[Session], CapacityService]] = None
    supports_waiting_list: bool = False

    @property
    def uses_capacity(self) -> bool:
        return self.capacity_factory is not None

    def charge_description(self, booking_id: str) -> str:
        return f"{self.label} booking {booking_id}"


PRODUCT_CONFIGS: Dict[ProductType, ProductConfig] = {
    ProductType.BIRTHDAY_PARTY: ProductConfig(
        product=ProductType.BIRTHDAY_PARTY,
        discount_target="birthday_party",
        label="Birthday Party",
        booking_fields=_birthday_party_fields,
    ),
    ProductType.ONE_TO_ONE: ProductConfig(
        product=ProductType.ONE_TO_ONE,
        discount_target="one_to_one",
        label="One to One",
        booking_fields=_one_to_one_fields,
    ),
    ProductType.HOLIDAY_CAMP: ProductConfig(
        product=ProductType.HOLIDAY_CAMP,
        discount_target="holiday_camp",
        label="Holiday Camp",
        booking_fields=_holiday_camp_fields,
        capacity_factory=CapacityService,
        supports_waiting_list=True,
    ),
}


def get_product_config(product: ProductType) -> ProductConfig:
    return PRODUCT_CONFIGS[ProductType(product)]
