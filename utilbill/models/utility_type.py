"""UtilityType database model - the rate catalog."""

from decimal import Decimal

from sqlalchemy import Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from utilbill.core.database import Base


class UtilityType(Base):
    """Utility type definition with its calculation method and rate."""

    __tablename__ = "utility_types"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    utility_name: Mapped[str] = mapped_column(String(100))
    calculation_method: Mapped[str] = mapped_column(String(20))
    rate_per_unit: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=14, scale=4), nullable=True
    )
    unit: Mapped[str | None] = mapped_column(String(20), nullable=True)  # e.g. "kWh"
    is_active: Mapped[bool] = mapped_column(default=True)
