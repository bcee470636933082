"""LeaseContract database model."""

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from utilbill.core.database import Base
from utilbill.models.enums import ContractStatus

if TYPE_CHECKING:
    from utilbill.models.unit import Unit


class LeaseContract(Base):
    """Lease of one unit to one tenant."""

    __tablename__ = "lease_contracts"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    contract_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    tenant_name: Mapped[str] = mapped_column(String(150))
    contract_status: Mapped[ContractStatus] = mapped_column(String(20), index=True)
    start_date: Mapped[date]
    end_date: Mapped[date | None] = mapped_column(nullable=True)

    # Foreign keys
    unit_id: Mapped[int] = mapped_column(ForeignKey("units.id"), index=True)

    # Relationships
    unit: Mapped["Unit"] = relationship(back_populates="contracts")
