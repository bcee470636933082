"""Utility and common-area-maintenance billing engine."""
