"""Enum definitions for utility billing."""

from enum import Enum


class CalculationMethod(str, Enum):
    """How a utility type's charge is derived."""

    FIXED = "FIXED"  # Flat rate per billing period
    METERED = "METERED"  # Rate times consumption
    ALLOCATED = "ALLOCATED"  # Pre-computed proportional share


class ContractStatus(str, Enum):
    """Lifecycle status of a lease contract."""

    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    TERMINATED = "TERMINATED"
