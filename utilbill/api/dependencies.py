"""Shared dependencies for API routes."""

import dataclasses
from collections.abc import Iterator

from utilbill.clients.contracts import HttpContractStore
from utilbill.core.config import settings
from utilbill.core.database import SessionLocal
from utilbill.services.sources import BillingSources
from utilbill.services.sql_sources import sql_sources


def get_billing_sources() -> Iterator[BillingSources]:
    """Dependency for the stores a billing request reads from."""
    sources = sql_sources(SessionLocal)
    if not settings.CONTRACT_API_URL:
        yield sources
        return
    with HttpContractStore(settings.CONTRACT_API_URL) as contracts:
        yield dataclasses.replace(sources, contracts=contracts)
