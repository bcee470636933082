"""Seed script to populate the database with a sample building."""

from datetime import date
from decimal import Decimal

from utilbill.core.database import Base, SessionLocal, engine
from utilbill.models.building import Building
from utilbill.models.contract import LeaseContract
from utilbill.models.enums import CalculationMethod, ContractStatus
from utilbill.models.meter_reading import MeterReading
from utilbill.models.unit import Unit
from utilbill.models.utility_type import UtilityType


def seed_database() -> None:
    """Seed the database with sample data."""
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        # Check if data already exists
        if db.query(Building).first():
            print("Database already has data. Skipping seed.")
            return

        print("Seeding database...")

        building = Building(
            building_name="Riverside Plaza",
            total_leasable_area=Decimal("5000"),
            generator_fee=Decimal("500000"),
            transformer_fee=Decimal("300000"),
        )
        db.add(building)
        db.flush()
        print(f"Created building: {building.building_name} (ID: {building.id})")

        shop = Unit(building_id=building.id, unit_number="G-01", unit_space=Decimal("1000"))
        hall = Unit(building_id=building.id, unit_number="G-02", unit_space=Decimal("4000"))
        db.add_all([shop, hall])
        db.flush()

        db.add(
            LeaseContract(
                unit_id=shop.id,
                contract_number="C-2024-001",
                tenant_name="Golden Tea House",
                contract_status=ContractStatus.ACTIVE,
                start_date=date(2024, 1, 1),
            )
        )

        electricity = UtilityType(
            utility_name="Electricity",
            calculation_method=CalculationMethod.METERED.value,
            rate_per_unit=Decimal("500"),
            unit="kWh",
        )
        db.add(electricity)
        db.flush()

        db.add_all(
            [
                MeterReading(
                    unit_id=unit.id,
                    utility_type_id=electricity.id,
                    reading_date=date(2024, 1, 31),
                    current_reading=Decimal("120"),
                )
                for unit in (shop, hall)
            ]
        )

        db.commit()
        print("Seeding complete!")
        print("  Building: Riverside Plaza, 5000 leasable area")
        print("  Units: G-01 (occupied), G-02 (vacant)")
        print("  Utility: Electricity, metered at 500 per kWh")


if __name__ == "__main__":
    seed_database()
