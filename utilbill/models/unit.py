"""Unit database model."""

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from utilbill.core.database import Base

if TYPE_CHECKING:
    from utilbill.models.building import Building
    from utilbill.models.contract import LeaseContract


class Unit(Base):
    """Leasable unit inside a building."""

    __tablename__ = "units"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    unit_number: Mapped[str] = mapped_column(String(50))
    unit_space: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2))
    has_meter: Mapped[bool] = mapped_column(default=True)
    is_active: Mapped[bool] = mapped_column(default=True)

    # Foreign keys
    building_id: Mapped[int] = mapped_column(ForeignKey("buildings.id"), index=True)

    # Relationships
    building: Mapped["Building"] = relationship(back_populates="units")
    contracts: Mapped[list["LeaseContract"]] = relationship(back_populates="unit")
