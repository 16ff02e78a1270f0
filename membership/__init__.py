"""Loyalty membership engine: sign-in by contact, subscription roles and terms, benefit redemption."""

__version__ = "0.1.0"
