"""Database models for the billing collaborator stores."""

from utilbill.models.building import Building
from utilbill.models.contract import LeaseContract
from utilbill.models.meter_reading import MeterReading
from utilbill.models.unit import Unit
from utilbill.models.utility_type import UtilityType

__all__ = ["Building", "Unit", "LeaseContract", "UtilityType", "MeterReading"]
