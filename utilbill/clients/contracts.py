"""Contract store backed by a remote property-management API."""

from datetime import date

import httpx
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from utilbill.models.enums import ContractStatus
from utilbill.schemas.billing import ContractRecord
from utilbill.schemas.responses import parse_paged_or_array, unwrap_items

_REMOTE = {"alias_generator": to_camel, "populate_by_name": True}


class RemoteUnitRef(BaseModel):
    """Unit reference embedded in a remote contract."""

    model_config = _REMOTE

    id: int
    unit_number: str | None = None


class RemoteTenantRef(BaseModel):
    """Tenant reference embedded in a remote contract."""

    model_config = _REMOTE

    id: int | None = None
    tenant_name: str | None = None


class RemoteContract(BaseModel):
    """Contract as served by the remote API."""

    model_config = _REMOTE

    id: int
    contract_number: str | None = None
    contract_status: str
    start_date: date | None = None
    unit: RemoteUnitRef | None = None
    tenant: RemoteTenantRef | None = None


class HttpContractStore:
    """Reads active lease contracts over HTTP.

    HTTP and transport errors propagate as ``httpx.HTTPError``; the
    occupancy resolver treats such a unit as vacant.
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def list_active_contracts(self, unit_id: int) -> list[ContractRecord]:
        response = self._client.get(
            "/contracts",
            params={"unitId": unit_id, "status": ContractStatus.ACTIVE.value},
        )
        response.raise_for_status()
        contracts = unwrap_items(parse_paged_or_array(RemoteContract, response.json()))
        return [
            ContractRecord(
                id=c.id,
                unit_id=unit_id,
                tenant_name=c.tenant.tenant_name if c.tenant else None,
                contract_number=c.contract_number,
                start_date=c.start_date,
            )
            for c in contracts
            # The API may ignore the filters, so check them again
            if c.unit is not None
            and c.unit.id == unit_id
            and c.contract_status.upper() == ContractStatus.ACTIVE.value
        ]

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpContractStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
