"""MeterReading database model - the consumption ledger."""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from utilbill.core.database import Base


class MeterReading(Base):
    """Cumulative meter reading for one unit and utility type."""

    __tablename__ = "meter_readings"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
    )  # When added to database
    reading_date: Mapped[date] = mapped_column(index=True)  # When reading was taken

    # The actual reading value (using Decimal for precision)
    current_reading: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=3))

    # Foreign keys
    unit_id: Mapped[int] = mapped_column(ForeignKey("units.id"), index=True)
    utility_type_id: Mapped[int] = mapped_column(ForeignKey("utility_types.id"), index=True)
