import pytest
from pydantic import ValidationError

from activity_booking.core.config import Settings


def test_defaults_without_stripe_key():
    settings = Settings(stripe_secret_key="", environment="development")

    assert not settings.stripe_configured
    assert not settings.is_production
    assert settings.sandbox_card_token == "tok_visa"


@pytest.mark.parametrize("environment", ["production", "PROD", " live "])
def test_production_environments(environment):
    assert Settings(environment=environment).is_production


def test_log_level_is_normalized():
    assert Settings(log_level=" debug ").log_level == "DEBUG"


def test_gateway_timeout_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(payment_gateway_timeout_seconds=0)


def test_stripe_configured_with_key():
    assert Settings(stripe_secret_key="sk_test_123").stripe_configured
