"""Booking creation and payment orchestration for activity products."""

__version__ = "0.1.0"
