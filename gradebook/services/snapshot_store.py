"""
Tenant snapshot store: per-tenant persistence of the grade book.

A tenant's grade book is kept as three JSON snapshots (classes, students,
settings).  Every store operation is addressed by ``(tenant_id, kind)``;
there is no call that reads or writes across tenants, so isolation is part
of the store contract rather than a key-naming convention.

Two implementations are provided:

* :class:`SqlSnapshotStore`: rows in the ``tenant_snapshots`` table.
* :class:`MemorySnapshotStore`: a process-local dict, used by tests and
  single-process tooling.
"""

from __future__ import annotations

import copy
import enum
import logging
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy import delete, select
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.exceptions import DatabaseConnectionError
from gradebook.models.tenant_snapshot import TenantSnapshot
from gradebook.schemas.gradebook import Gradebook, SchoolClass, SchoolSettings, Student

logger = logging.getLogger(__name__)


class SnapshotKind(str, enum.Enum):
    """The three slices of a tenant's grade book."""

    CLASSES = "classes"
    STUDENTS = "students"
    SETTINGS = "settings"


class SnapshotStore(Protocol):
    """Keyed JSON storage partitioned by tenant."""

    async def get(self, tenant_id: str, kind: SnapshotKind) -> Any | None:
        """Return the stored payload, or ``None`` if nothing was saved yet."""
        ...

    async def put(self, tenant_id: str, kind: SnapshotKind, payload: Any) -> None:
        """Replace the payload for ``(tenant_id, kind)``."""
        ...

    async def delete_tenant(self, tenant_id: str) -> int:
        """Remove every snapshot of *tenant_id*; return how many were removed."""
        ...


class MemorySnapshotStore:
    """Dict-backed store; payloads are deep-copied on the way in and out."""

    def __init__(self) -> None:
        self._data: dict[tuple[str, str], Any] = {}

    async def get(self, tenant_id: str, kind: SnapshotKind) -> Any | None:
        payload = self._data.get((tenant_id, SnapshotKind(kind).value))
        return copy.deepcopy(payload)

    async def put(self, tenant_id: str, kind: SnapshotKind, payload: Any) -> None:
        self._data[(tenant_id, SnapshotKind(kind).value)] = copy.deepcopy(payload)

    async def delete_tenant(self, tenant_id: str) -> int:
        keys = [key for key in self._data if key[0] == tenant_id]
        for key in keys:
            del self._data[key]
        return len(keys)


class SqlSnapshotStore:
    """Store backed by the ``tenant_snapshots`` table.

    Writes are flushed but not committed; the request-scoped session
    dependency commits or rolls back the whole request.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _row(self, tenant_id: str, kind: SnapshotKind) -> TenantSnapshot | None:
        stmt = select(TenantSnapshot).where(
            TenantSnapshot.tenant_id == tenant_id,
            TenantSnapshot.kind == SnapshotKind(kind).value,
        )
        try:
            result = await self._session.execute(stmt)
        except (OperationalError, InterfaceError) as exc:
            raise DatabaseConnectionError(str(exc.orig or exc)) from exc
        return result.scalar_one_or_none()

    async def get(self, tenant_id: str, kind: SnapshotKind) -> Any | None:
        row = await self._row(tenant_id, kind)
        return row.payload if row is not None else None

    async def put(self, tenant_id: str, kind: SnapshotKind, payload: Any) -> None:
        row = await self._row(tenant_id, kind)
        if row is None:
            self._session.add(
                TenantSnapshot(
                    tenant_id=tenant_id,
                    kind=SnapshotKind(kind).value,
                    payload=payload,
                    updated_at=datetime.utcnow(),
                )
            )
        else:
            row.payload = payload
            row.updated_at = datetime.utcnow()
        await self._session.flush()

    async def delete_tenant(self, tenant_id: str) -> int:
        result = await self._session.execute(
            delete(TenantSnapshot).where(TenantSnapshot.tenant_id == tenant_id)
        )
        removed = result.rowcount or 0
        logger.info("Deleted %d snapshots of tenant %s", removed, tenant_id)
        return removed


# ---------------------------------------------------------------------------
# Grade book <-> snapshots
# ---------------------------------------------------------------------------


async def load_gradebook(store: SnapshotStore, tenant_id: str) -> Gradebook:
    """Assemble a tenant's :class:`Gradebook`; missing snapshots load as empty."""
    classes = await store.get(tenant_id, SnapshotKind.CLASSES) or []
    students = await store.get(tenant_id, SnapshotKind.STUDENTS) or []
    settings = await store.get(tenant_id, SnapshotKind.SETTINGS) or {}
    return Gradebook(
        classes=[SchoolClass.model_validate(item) for item in classes],
        students=[Student.model_validate(item) for item in students],
        settings=SchoolSettings.model_validate(settings),
    )


async def save_gradebook(store: SnapshotStore, tenant_id: str, gradebook: Gradebook) -> None:
    """Write all three snapshots of *gradebook* in camelCase JSON form."""
    await store.put(
        tenant_id,
        SnapshotKind.CLASSES,
        [item.model_dump(mode="json", by_alias=True) for item in gradebook.classes],
    )
    await store.put(
        tenant_id,
        SnapshotKind.STUDENTS,
        [item.model_dump(mode="json", by_alias=True) for item in gradebook.students],
    )
    await store.put(
        tenant_id,
        SnapshotKind.SETTINGS,
        gradebook.settings.model_dump(mode="json", by_alias=True),
    )
