"""
Matrix record stores.

Callers reach matrix records only through ``MatrixStore``. Two backends:

* ``RemoteMatrixStore`` - the external Persistence Service (production)
* ``InMemoryMatrixStore`` - a process-local dict (tests, local development)

Both are whole-document stores: ``put`` overwrites the record and the last
writer wins. There is no version token and no merge.
"""

import hmac
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

from depmatrix.core.config import settings
from depmatrix.core.exceptions import MatrixNotFoundError
from depmatrix.core.logging_config import logger
from depmatrix.schemas.matrix import MatrixItem, StructuredMatrix
from depmatrix.services.persistence_client import MatrixServiceClient


class MatrixStore(ABC):
    """Store interface injected into the matrix service"""

    @abstractmethod
    async def list(self) -> List[MatrixItem]:
        ...

    @abstractmethod
    async def get(self, matrix_id: str) -> MatrixItem:
        """Raises MatrixNotFoundError"""

    @abstractmethod
    async def create(
        self,
        title: str,
        description: str,
        keyword: str,
        data: StructuredMatrix,
        created_by: str,
    ) -> MatrixItem:
        ...

    @abstractmethod
    async def put(self, matrix_id: str, record: MatrixItem) -> MatrixItem:
        """Whole-document overwrite. Raises MatrixNotFoundError"""

    @abstractmethod
    async def delete(self, matrix_id: str) -> None:
        """Raises MatrixNotFoundError"""

    @abstractmethod
    async def verify_keyword(self, matrix_id: str, keyword: str) -> bool:
        ...


class InMemoryMatrixStore(MatrixStore):
    """Dict-backed store. Records are copied in and out so callers never share state."""

    def __init__(self):
        self._records: Dict[str, MatrixItem] = {}

    async def list(self) -> List[MatrixItem]:
        records = sorted(self._records.values(), key=lambda item: item.created_at)
        return [record.model_copy(deep=True) for record in records]

    async def get(self, matrix_id: str) -> MatrixItem:
        record = self._records.get(matrix_id)
        if record is None:
            raise MatrixNotFoundError(matrix_id)
        return record.model_copy(deep=True)

    async def create(
        self,
        title: str,
        description: str,
        keyword: str,
        data: StructuredMatrix,
        created_by: str,
    ) -> MatrixItem:
        record = MatrixItem(
            id=str(uuid.uuid4()),
            title=title,
            description=description,
            keyword=keyword,
            created_at=datetime.now(timezone.utc).isoformat(),
            created_by=created_by,
            data=data.model_copy(deep=True),
            shared_with=[],
        )
        self._records[record.id] = record
        return record.model_copy(deep=True)

    async def put(self, matrix_id: str, record: MatrixItem) -> MatrixItem:
        if matrix_id not in self._records:
            raise MatrixNotFoundError(matrix_id)
        stored = record.model_copy(deep=True, update={"id": matrix_id})
        self._records[matrix_id] = stored
        return stored.model_copy(deep=True)

    async def delete(self, matrix_id: str) -> None:
        if self._records.pop(matrix_id, None) is None:
            raise MatrixNotFoundError(matrix_id)

    async def verify_keyword(self, matrix_id: str, keyword: str) -> bool:
        record = self._records.get(matrix_id)
        if record is None:
            raise MatrixNotFoundError(matrix_id)
        return hmac.compare_digest(record.keyword.encode("utf-8"), keyword.encode("utf-8"))

    def clear(self) -> None:
        self._records.clear()


class RemoteMatrixStore(MatrixStore):
    """Store backed by the external Persistence Service"""

    def __init__(self, client: MatrixServiceClient):
        self.client = client

    async def list(self) -> List[MatrixItem]:
        return await self.client.list_matrices()

    async def get(self, matrix_id: str) -> MatrixItem:
        return await self.client.get_matrix(matrix_id)

    async def create(
        self,
        title: str,
        description: str,
        keyword: str,
        data: StructuredMatrix,
        created_by: str,
    ) -> MatrixItem:
        payload = {
            "title": title,
            "description": description,
            "keyword": keyword,
            "data": data.model_dump(),
            "createdBy": created_by,
        }
        return await self.client.create_matrix(payload)

    async def put(self, matrix_id: str, record: MatrixItem) -> MatrixItem:
        return await self.client.update_matrix(matrix_id, record)

    async def delete(self, matrix_id: str) -> None:
        await self.client.delete_matrix(matrix_id)

    async def verify_keyword(self, matrix_id: str, keyword: str) -> bool:
        return await self.client.verify_matrix_access(matrix_id, keyword)


# Process-wide in-memory store, used when STORAGE_MODE=memory
memory_store = InMemoryMatrixStore()


def create_matrix_store(mode: Optional[str] = None, token: Optional[str] = None) -> MatrixStore:
    """Store for the configured storage mode"""
    mode = (mode or settings.STORAGE_MODE).lower()
    if mode == "memory":
        return memory_store
    if mode != "remote":
        logger.warning(f"Unknown STORAGE_MODE {mode!r}, falling back to remote")
    return RemoteMatrixStore(MatrixServiceClient(token=token))
