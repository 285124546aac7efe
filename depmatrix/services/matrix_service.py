"""
Matrix Service - coordinates the matrix model, the record store, the access
gate and the history log for one request.

Flow for every mutation:
    fetch record -> apply pure model function -> put whole record -> log history

History is written only after the store accepted the write. A failed put
raises PersistenceError and leaves the stored record as it was; nothing here
tries to reconcile.
"""

from typing import List, Optional

from depmatrix.core.config import settings
from depmatrix.core.exceptions import AttributeNotFoundError, ValidationError
from depmatrix.core.logging_config import logger
from depmatrix.schemas.auth import CurrentUser
from depmatrix.schemas.history import HistoryEntry
from depmatrix.schemas.matrix import (
    MatrixCreate,
    MatrixInfoUpdate,
    MatrixItem,
    MatrixSummary,
    MatrixTotals,
    MatrixView,
    ShareLinkResponse,
    StructuredMatrix,
)
from depmatrix.services import matrix_model
from depmatrix.services.access_gate import AccessGate, access_gate
from depmatrix.services.history_service import HistoryLog, history_log
from depmatrix.services.matrix_store import MatrixStore


class MatrixService:

    def __init__(
        self,
        store: MatrixStore,
        history: Optional[HistoryLog] = None,
        gate: Optional[AccessGate] = None,
    ):
        self.store = store
        self.history = history if history is not None else history_log
        self.gate = gate if gate is not None else access_gate

    # ========== Helpers ==========

    async def _load(self, matrix_id: str) -> MatrixItem:
        record = await self.store.get(matrix_id)
        record.data = matrix_model.normalize_matrix(record.data)
        return record

    async def _save(self, record: MatrixItem, data: StructuredMatrix) -> MatrixItem:
        updated = record.model_copy(update={"data": data})
        return await self.store.put(record.id, updated)

    @staticmethod
    def build_view(record: MatrixItem) -> MatrixView:
        return MatrixView(
            matrix=record,
            totals=matrix_model.compute_totals(record.data),
            categories=matrix_model.group_rows_by_category(record.data),
            editable_cells=matrix_model.editable_cells(record.data),
        )

    @staticmethod
    def _require_attribute(record: MatrixItem, row_id: int) -> None:
        if matrix_model.find_row(record.data, row_id) is None:
            raise AttributeNotFoundError(row_id, record.id)

    # ========== Read Operations ==========

    async def list_matrices(self, user: CurrentUser) -> List[MatrixSummary]:
        records = await self.store.list()
        return [
            MatrixSummary(
                id=record.id,
                title=record.title,
                description=record.description,
                keyword=record.keyword if user.is_admin else None,
                created_at=record.created_at,
                created_by=record.created_by,
                attribute_count=len(record.data.rows),
                dependency_count=matrix_model.count_dependencies(record.data),
            )
            for record in records
        ]

    async def get_view(self, matrix_id: str, user: CurrentUser) -> MatrixView:
        self.gate.require(matrix_id, user)
        record = await self._load(matrix_id)
        if not user.is_admin:
            record.keyword = ""
        return self.build_view(record)

    async def get_totals(self, matrix_id: str, user: CurrentUser) -> MatrixTotals:
        self.gate.require(matrix_id, user)
        record = await self._load(matrix_id)
        return matrix_model.compute_totals(record.data)

    async def verify_access(self, matrix_id: str, user: CurrentUser, keyword: str) -> bool:
        return await self.gate.unlock(self.store, matrix_id, user, keyword)

    # ========== User Operations ==========

    async def toggle_cell(self, matrix_id: str, user: CurrentUser, row_id: int, col_id: int) -> MatrixView:
        self.gate.require(matrix_id, user)
        record = await self._load(matrix_id)
        self._require_attribute(record, row_id)
        self._require_attribute(record, col_id)

        data = matrix_model.toggle_dependency(record.data, row_id, col_id)
        new_value = matrix_model.get_dependency(data, row_id, col_id)
        saved = await self._save(record, data)

        self.history.record_toggle(user, data, row_id, col_id, new_value, matrix_id=matrix_id)
        logger.log_matrix_event(
            matrix_id, f"cell {matrix_model.cell_key(row_id, col_id)} -> {new_value}", user_id=user.id
        )
        if not user.is_admin:
            saved.keyword = ""
        return self.build_view(saved)

    async def submit(self, matrix_id: str, user: CurrentUser) -> HistoryEntry:
        self.gate.require(matrix_id, user)
        record = await self._load(matrix_id)
        entry = self.history.record_submit(user, record.data, matrix_id=matrix_id)
        logger.log_matrix_event(matrix_id, "submitted", user_id=user.id)
        return entry

    # ========== Admin Operations ==========

    async def create_matrix(self, payload: MatrixCreate, admin: CurrentUser) -> MatrixItem:
        title = payload.title.strip()
        keyword = payload.keyword.strip()
        if not title or not keyword:
            raise ValidationError(
                "Title and keyword are required",
                field="title" if not title else "keyword",
            )

        data = (
            matrix_model.normalize_matrix(payload.data)
            if payload.data is not None
            else matrix_model.default_matrix()
        )
        record = await self.store.create(
            title=title,
            description=payload.description,
            keyword=keyword,
            data=data,
            created_by=admin.id,
        )
        logger.log_matrix_event(record.id, "created", user_id=admin.id)
        return record

    async def update_info(self, matrix_id: str, info: MatrixInfoUpdate, admin: CurrentUser) -> MatrixItem:
        record = await self._load(matrix_id)
        changes = info.model_dump(exclude_none=True)
        if "title" in changes and not changes["title"].strip():
            raise ValidationError("Title is required", field="title")
        if "keyword" in changes and not changes["keyword"].strip():
            raise ValidationError("Keyword is required", field="keyword")

        keyword_changed = "keyword" in changes and changes["keyword"] != record.keyword
        saved = await self.store.put(matrix_id, record.model_copy(update=changes))
        if keyword_changed:
            self.gate.revoke_matrix(matrix_id)
        logger.log_matrix_event(matrix_id, f"info updated ({', '.join(sorted(changes)) or 'no changes'})", user_id=admin.id)
        return saved

    async def save_matrix(self, matrix_id: str, data: StructuredMatrix, admin: CurrentUser) -> MatrixItem:
        record = await self._load(matrix_id)
        normalized = matrix_model.normalize_matrix(data)
        saved = await self._save(record, normalized)
        self.history.record_edit(admin, normalized, matrix_id=matrix_id)
        logger.log_matrix_event(matrix_id, "saved by admin", user_id=admin.id)
        return saved

    async def add_attribute(
        self,
        matrix_id: str,
        name: str,
        category: str,
        requested_id: Optional[int] = None,
    ) -> MatrixItem:
        record = await self._load(matrix_id)
        data = matrix_model.add_attribute(
            record.data, name, category or settings.DEFAULT_CATEGORY, requested_id
        )
        saved = await self._save(record, data)
        logger.log_matrix_event(matrix_id, f"attribute added: {name}")
        return saved

    async def rename_attribute(self, matrix_id: str, row_id: int, name: str) -> MatrixItem:
        record = await self._load(matrix_id)
        self._require_attribute(record, row_id)
        if not name.strip():
            raise ValidationError("Attribute name is required", field="name")
        saved = await self._save(record, matrix_model.rename_attribute(record.data, row_id, name.strip()))
        logger.log_matrix_event(matrix_id, f"attribute {row_id} renamed")
        return saved

    async def remove_attribute(self, matrix_id: str, row_id: int) -> MatrixItem:
        record = await self._load(matrix_id)
        saved = await self._save(record, matrix_model.remove_attribute(record.data, row_id))
        logger.log_matrix_event(matrix_id, f"attribute {row_id} removed")
        return saved

    async def delete_matrix(self, matrix_id: str, admin: CurrentUser) -> None:
        await self.store.delete(matrix_id)
        self.gate.revoke_matrix(matrix_id)
        logger.log_matrix_event(matrix_id, "deleted", user_id=admin.id)

    async def share_link(self, matrix_id: str) -> ShareLinkResponse:
        record = await self.store.get(matrix_id)
        link = f"{settings.PUBLIC_BASE_URL.rstrip('/')}/matrix/{record.id}"
        return ShareLinkResponse(link=link, keyword=record.keyword)
