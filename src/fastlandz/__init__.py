"""Fastlandz - offline-first sync client for the 7-day fasting challenge."""

__version__ = "0.1.0"
