"""SQLAlchemy-backed collaborator stores.

Each lookup opens its own session from the factory, so per-unit lookups
running in parallel worker threads never share a session.
"""

from datetime import date

from sqlalchemy import and_
from sqlalchemy.orm import Session, sessionmaker

from utilbill.core.database import SessionLocal
from utilbill.models.building import Building
from utilbill.models.contract import LeaseContract
from utilbill.models.enums import ContractStatus
from utilbill.models.meter_reading import MeterReading
from utilbill.models.unit import Unit
from utilbill.models.utility_type import UtilityType
from utilbill.schemas.billing import (
    BuildingConfig,
    ContractRecord,
    MeterReadingRecord,
    UnitRecord,
    UtilityTypeDef,
)
from utilbill.services.sources import BillingSources


class SqlBuildingStore:
    """Building configuration and units from the database."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get_building(self, building_id: int) -> BuildingConfig | None:
        with self._session_factory() as db:
            building = db.query(Building).filter(Building.id == building_id).first()
            if not building:
                return None
            return BuildingConfig(
                id=building.id,
                building_name=building.building_name,
                total_leasable_area=building.total_leasable_area,
                generator_fee=building.generator_fee,
                transformer_fee=building.transformer_fee,
            )

    def list_units(self, building_id: int) -> list[UnitRecord]:
        with self._session_factory() as db:
            units = (
                db.query(Unit)
                .filter(and_(Unit.building_id == building_id, Unit.is_active.is_(True)))
                .order_by(Unit.id)
                .all()
            )
            return [
                UnitRecord(
                    id=u.id,
                    unit_number=u.unit_number,
                    unit_space=u.unit_space,
                    has_meter=u.has_meter,
                )
                for u in units
            ]


class SqlContractStore:
    """Active lease contracts from the database."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def list_active_contracts(self, unit_id: int) -> list[ContractRecord]:
        with self._session_factory() as db:
            contracts = (
                db.query(LeaseContract)
                .filter(
                    and_(
                        LeaseContract.unit_id == unit_id,
                        LeaseContract.contract_status == ContractStatus.ACTIVE,
                    )
                )
                .all()
            )
            return [
                ContractRecord(
                    id=c.id,
                    unit_id=c.unit_id,
                    tenant_name=c.tenant_name,
                    contract_number=c.contract_number,
                    start_date=c.start_date,
                )
                for c in contracts
            ]


class SqlMeterReadingStore:
    """Meter readings from the database."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def list_readings(
        self, unit_id: int, utility_type_id: int, until: date
    ) -> list[MeterReadingRecord]:
        with self._session_factory() as db:
            readings = (
                db.query(MeterReading)
                .filter(
                    and_(
                        MeterReading.unit_id == unit_id,
                        MeterReading.utility_type_id == utility_type_id,
                        MeterReading.reading_date <= until,
                    )
                )
                .order_by(MeterReading.reading_date)
                .all()
            )
            return [
                MeterReadingRecord(
                    id=r.id,
                    unit_id=r.unit_id,
                    utility_type_id=r.utility_type_id,
                    reading_date=r.reading_date,
                    current_reading=r.current_reading,
                )
                for r in readings
            ]


class SqlUtilityTypeCatalog:
    """Utility type definitions from the database."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def list_utility_types(self) -> list[UtilityTypeDef]:
        with self._session_factory() as db:
            return [
                UtilityTypeDef(
                    id=t.id,
                    name=t.utility_name,
                    calculation_method=t.calculation_method,
                    rate_per_unit=t.rate_per_unit,
                    unit=t.unit,
                    active=t.is_active,
                )
                for t in db.query(UtilityType).order_by(UtilityType.id).all()
            ]


def sql_sources(session_factory: sessionmaker[Session] = SessionLocal) -> BillingSources:
    """Bundle the SQL-backed stores for a billing run."""
    return BillingSources(
        buildings=SqlBuildingStore(session_factory),
        contracts=SqlContractStore(session_factory),
        readings=SqlMeterReadingStore(session_factory),
        catalog=SqlUtilityTypeCatalog(session_factory),
    )
