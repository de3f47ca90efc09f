"""Required parts of a booking request."""

from datetime import date

from pydantic import ValidationError
import pytest

from activity_booking.schemas.booking import (
    BookingCreateRequest,
    EmergencyContactIn,
    ParentIn,
    PaymentDetails,
    StudentIn,
)
from activity_booking.services.booking_products import _age_on, _student_fields

STUDENT = {
    "first_name": "Ava",
    "last_name": "Smith",
    "date_of_birth": date(2016, 5, 1),
    "gender": "female",
}
PARENT = {
    "first_name": "Jamie",
    "last_name": "Smith",
    "email": "jamie@example.com",
    "phone_number": "07000 111111",
    "relation_to_child": "Mother",
    "how_did_you_hear": "Google",
}
EMERGENCY = {
    "first_name": "Sam",
    "last_name": "Jones",
    "phone_number": "07000 000000",
    "relation": "Uncle",
}
PAYMENT = {
    "first_name": "Jamie",
    "last_name": "Smith",
    "email": "jamie@example.com",
    "billing_address": "1 High Street, London",
}


def _without(data, field):
    return {key: value for key, value in data.items() if key != field}


def test_complete_request_is_accepted():
    request = BookingCreateRequest(
        students=[STUDENT], parents=[PARENT], emergency=EMERGENCY, payment=PAYMENT
    )

    assert request.students[0].age is None
    assert request.emergency.relation == "Uncle"


def test_at_least_one_parent_is_required():
    with pytest.raises(ValidationError):
        BookingCreateRequest(students=[STUDENT], parents=[], emergency=EMERGENCY)
    with pytest.raises(ValidationError):
        BookingCreateRequest(students=[STUDENT], emergency=EMERGENCY)


def test_emergency_contact_may_be_omitted_for_waiting_list():
    request = BookingCreateRequest(students=[STUDENT], parents=[PARENT])

    assert request.emergency is None
    assert request.payment is None


@pytest.mark.parametrize("field", ["last_name", "date_of_birth", "gender"])
def test_student_field_required(field):
    with pytest.raises(ValidationError):
        StudentIn(**_without(STUDENT, field))


@pytest.mark.parametrize(
    "field",
    ["last_name", "email", "phone_number", "relation_to_child", "how_did_you_hear"],
)
def test_parent_field_required(field):
    with pytest.raises(ValidationError):
        ParentIn(**_without(PARENT, field))


def test_parent_email_must_be_valid():
    with pytest.raises(ValidationError):
        ParentIn(**{**PARENT, "email": "not-an-email"})


@pytest.mark.parametrize("field", ["last_name", "phone_number", "relation"])
def test_emergency_field_required(field):
    with pytest.raises(ValidationError):
        EmergencyContactIn(**_without(EMERGENCY, field))


def test_billing_address_required():
    with pytest.raises(ValidationError):
        PaymentDetails(**_without(PAYMENT, "billing_address"))
    with pytest.raises(ValidationError):
        PaymentDetails(**{**PAYMENT, "billing_address": ""})


class TestStudentAge:
    def test_age_on_counts_completed_years(self):
        assert _age_on(date(2016, 5, 1), date(2026, 4, 30)) == 9
        assert _age_on(date(2016, 5, 1), date(2026, 5, 1)) == 10

    def test_given_age_is_kept(self):
        assert _student_fields(StudentIn(**STUDENT, age=7))["age"] == 7

    def test_missing_age_is_derived_from_date_of_birth(self):
        fields = _student_fields(StudentIn(**STUDENT))

        assert fields["age"] == _age_on(date(2016, 5, 1), date.today())
