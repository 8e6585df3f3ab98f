"""Visa eligibility rules and candidate matching for teacher recruitment."""

__version__ = "0.1.0"
