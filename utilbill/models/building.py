"""Building database model."""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from utilbill.core.database import Base

if TYPE_CHECKING:
    from utilbill.models.unit import Unit


class Building(Base):
    """Building with the shared fees that are split across its units."""

    __tablename__ = "buildings"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    building_name: Mapped[str] = mapped_column(String(100), index=True)
    total_leasable_area: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2))
    generator_fee: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2), default=Decimal("0")
    )
    transformer_fee: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2), default=Decimal("0")
    )
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))

    # Relationships
    units: Mapped[list["Unit"]] = relationship(back_populates="building")
