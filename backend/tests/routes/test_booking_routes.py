"""HTTP behaviour of the v1 booking endpoints."""

from fastapi.testclient import TestClient
import pytest

from activity_booking.api.dependencies import get_db, get_payment_orchestrator
from activity_booking.core.enums import BookingStatus
from activity_booking.main import app
from activity_booking.models import Booking, ClassSchedule
from activity_booking.services.payment_orchestrator import PaymentOrchestrator


@pytest.fixture
def client(db, fake_gateway):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_orchestrator] = lambda: PaymentOrchestrator(fake_gateway)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _payload(**overrides):
    payload = {
        "students": [
            {
                "first_name": "Ava",
                "last_name": "Smith",
                "date_of_birth": "2016-05-01",
                "gender": "female",
            }
        ],
        "parents": [
            {
                "first_name": "Jamie",
                "last_name": "Smith",
                "email": "jamie@example.com",
                "phone_number": "07000 111111",
                "relation_to_child": "Mother",
                "how_did_you_hear": "Google",
            }
        ],
        "emergency": {
            "first_name": "Sam",
            "last_name": "Jones",
            "phone_number": "07000 000000",
            "relation": "Uncle",
        },
        "payment": {
            "first_name": "Jamie",
            "last_name": "Smith",
            "email": "jamie@example.com",
            "billing_address": "1 High Street, London",
        },
    }
    payload.update(overrides)
    return payload


def test_create_birthday_party_booking(client, db, make_plan, make_discount):
    plan = make_plan("100.00")
    discount = make_discount()

    response = client.post(
        "/api/v1/bookings/birthday-party",
        json=_payload(payment_plan_id=plan.id, discount_id=discount.id),
        headers={"X-Booked-By": "admin-7"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "active"
    assert body["payment_status"] == "paid"
    assert body["product_type"] == "birthday_party"
    assert float(body["final_amount"]) == 80.0
    assert db.get(Booking, body["booking_id"]).booked_by == "admin-7"


def test_declined_charge_still_creates_booking(client, fake_gateway, make_plan):
    fake_gateway.charge_status = "failed"

    response = client.post(
        "/api/v1/bookings/one_to_one", json=_payload(payment_plan_id=make_plan().id)
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["payment_status"] == "failed"
    assert body["failure_reason"] == "Card declined"


def test_duplicate_lead_returns_conflict(client, make_lead):
    lead = make_lead()
    first = client.post("/api/v1/bookings/birthday-party", json=_payload(lead_id=lead.id))
    assert first.status_code == 201

    response = client.post("/api/v1/bookings/birthday-party", json=_payload(lead_id=lead.id))

    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "DUPLICATE_BOOKING"
    assert body["detail"] == "You have already booked this lead."
    assert body["errors"]["existing_booking_id"] == first.json()["booking_id"]


def test_unknown_product(client):
    response = client.post("/api/v1/bookings/pony-rides", json=_payload())

    assert response.status_code == 404
    assert response.json()["code"] == "UNKNOWN_PRODUCT"


def test_request_validation_envelope(client):
    response = client.post("/api/v1/bookings/birthday-party", json=_payload(students=[]))

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "validation_error"
    assert body["instance"] == "/api/v1/bookings/birthday-party"


@pytest.mark.parametrize(
    "overrides",
    [
        {"parents": []},
        {"emergency": None},
        {
            "payment": {
                "first_name": "Jamie",
                "last_name": "Smith",
                "email": "jamie@example.com",
            }
        },
    ],
    ids=["no-parent", "no-emergency-contact", "no-billing-address"],
)
def test_incomplete_booking_is_rejected(client, db, make_plan, overrides):
    response = client.post(
        "/api/v1/bookings/birthday-party", json=_payload(payment_plan_id=make_plan().id, **overrides)
    )

    assert response.status_code in (400, 422)
    assert db.query(Booking).count() == 0


def test_waiting_list_without_emergency_contact(client, make_schedule):
    schedule = make_schedule(capacity=0, total_capacity=12)

    response = client.post(
        "/api/v1/bookings/holiday-camp/waiting-list",
        json=_payload(class_schedule_id=schedule.id, payment=None, emergency=None),
    )

    assert response.status_code == 201
    assert response.json()["status"] == "waiting_list"


def test_holiday_camp_without_class_is_rejected(client):
    response = client.post("/api/v1/bookings/holiday-camp", json=_payload())

    assert response.status_code == 400
    assert response.json()["code"] == "CLASS_SCHEDULE_REQUIRED"


def test_waiting_list_and_cancel(client, db, make_schedule):
    schedule = make_schedule(capacity=0, total_capacity=12)

    created = client.post(
        "/api/v1/bookings/holiday-camp/waiting-list",
        json=_payload(class_schedule_id=schedule.id, payment=None),
    )
    assert created.status_code == 201
    booking_id = created.json()["booking_id"]
    assert created.json()["status"] == "waiting_list"

    cancelled = client.post(
        f"/api/v1/bookings/{booking_id}/cancel",
        json={"reason": "No longer needed"},
        headers={"X-Booked-By": "parent"},
    )

    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    db.expire_all()
    booking = db.get(Booking, booking_id)
    assert booking.status == BookingStatus.CANCELLED
    assert booking.cancelled_by == "parent"


def test_cancel_and_reactivate_paid_camp(client, db, make_plan, make_schedule):
    schedule = make_schedule(capacity=3)
    created = client.post(
        "/api/v1/bookings/holiday-camp",
        json=_payload(class_schedule_id=schedule.id, payment_plan_id=make_plan().id),
    )
    booking_id = created.json()["booking_id"]

    cancelled = client.post(f"/api/v1/bookings/{booking_id}/cancel")
    assert cancelled.json()["seats_reserved"] == 0

    reactivated = client.post(f"/api/v1/bookings/{booking_id}/reactivate")

    assert reactivated.status_code == 200
    assert reactivated.json()["status"] == "active"
    assert reactivated.json()["seats_reserved"] == 1
    db.expire_all()
    assert db.get(ClassSchedule, schedule.id).capacity == 2


def test_retry_payment_route(client, fake_gateway, make_plan):
    fake_gateway.charge_status = "failed"
    created = client.post(
        "/api/v1/bookings/one-to-one", json=_payload(payment_plan_id=make_plan("45.50").id)
    )
    booking_id = created.json()["booking_id"]
    fake_gateway.charge_status = "succeeded"

    response = client.post(
        f"/api/v1/bookings/{booking_id}/retry-payment",
        json={"payment": _payload()["payment"]},
    )

    assert response.status_code == 200
    assert response.json()["payment_status"] == "paid"
    assert fake_gateway.charges[-1]["amount"] == 4550


def test_malformed_booking_id(client):
    response = client.post("/api/v1/bookings/not-a-ulid/cancel")

    assert response.status_code in (404, 422)


def test_cancel_unknown_booking(client):
    response = client.post("/api/v1/bookings/01HZZZZZZZZZZZZZZZZZZZZZZZ/cancel")

    assert response.status_code == 404
    assert response.json()["code"] == "BOOKING_NOT_FOUND"


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
