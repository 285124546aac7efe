"""
History Log
===========

Append-only record of matrix changes. Callers write one entry per cell
toggle and one per submit (user) or save (admin). Each submit/save entry
carries a JSON snapshot of the matrix structure at that moment; snapshots are
independent copies, not a version chain.

The matrix model never reads this log.
"""

import json
import math
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional

from depmatrix.core.exceptions import HistoryEntryNotFoundError, ValidationError
from depmatrix.core.logging_config import logger
from depmatrix.schemas.auth import CurrentUser
from depmatrix.schemas.history import HistoryAction, HistoryEntriesResponse, HistoryEntry
from depmatrix.schemas.matrix import StructuredMatrix
from depmatrix.services.matrix_model import cell_key, find_column, find_row


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def snapshot_of(matrix: StructuredMatrix) -> str:
    return json.dumps(matrix.model_dump(), separators=(",", ":"))


class HistoryLog:
    """In-process append-only history store"""

    def __init__(self, clock: Callable[[], str] = utc_now_iso):
        self._entries: List[HistoryEntry] = []
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        self._entries.append(entry.model_copy(deep=True))
        logger.debug(
            f"History entry {entry.id}: {entry.action}",
            extra={"event_type": "history", "history_action": entry.action},
        )
        return entry

    def _new_entry(self, user: CurrentUser, action: HistoryAction, matrix_id: Optional[str], **fields) -> HistoryEntry:
        return HistoryEntry(
            id=str(uuid.uuid4()),
            matrix_id=matrix_id,
            user_id=user.id,
            user_role=user.role.value,
            timestamp=self._clock(),
            action=action,
            **fields,
        )

    # ==================== Writers ====================

    def record_toggle(
        self,
        user: CurrentUser,
        matrix: StructuredMatrix,
        row_id: int,
        col_id: int,
        new_value: bool,
        matrix_id: Optional[str] = None,
    ) -> HistoryEntry:
        """One entry per cell toggle: ``add`` when the cell became true, else ``remove``"""
        row = find_row(matrix, row_id)
        column = find_column(matrix, col_id)
        entry = self._new_entry(
            user,
            HistoryAction.ADD if new_value else HistoryAction.REMOVE,
            matrix_id,
            row_id=row_id,
            column_id=col_id,
            row_name=row.name if row else "",
            column_name=column.name if column else "",
            cell_key=cell_key(row_id, col_id),
            details=f"Changed value to {str(new_value).lower()}",
        )
        return self.append(entry)

    def record_submit(
        self, user: CurrentUser, matrix: StructuredMatrix, matrix_id: Optional[str] = None
    ) -> HistoryEntry:
        entry = self._new_entry(
            user,
            HistoryAction.SUBMIT_MATRIX,
            matrix_id,
            details=f"{user.username or user.id or 'User'} submitted their matrix",
            matrix_snapshot=snapshot_of(matrix),
        )
        return self.append(entry)

    def record_edit(
        self, user: CurrentUser, matrix: StructuredMatrix, matrix_id: Optional[str] = None
    ) -> HistoryEntry:
        entry = self._new_entry(
            user,
            HistoryAction.EDIT_MATRIX,
            matrix_id,
            details="Admin edited and saved the matrix",
            matrix_snapshot=snapshot_of(matrix),
        )
        return self.append(entry)

    # ==================== Readers ====================

    def get(self, entry_id: str) -> HistoryEntry:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry.model_copy(deep=True)
        raise HistoryEntryNotFoundError(entry_id)

    def list_entries(
        self,
        action: Optional[str] = None,
        user_id: Optional[str] = None,
        matrix_id: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> HistoryEntriesResponse:
        """Filtered entries, newest first"""
        # Later appends win ties on timestamp
        ordered = sorted(
            (
                (entry.timestamp, index, entry) for index, entry in enumerate(self._entries)
                if (action is None or entry.action == action)
                and (user_id is None or entry.user_id == user_id)
                and (matrix_id is None or entry.matrix_id == matrix_id)
            ),
            key=lambda item: item[:2],
            reverse=True,
        )
        entries = [entry for _, _, entry in ordered]

        total = len(entries)
        offset = (page - 1) * page_size
        items = [entry.model_copy(deep=True) for entry in entries[offset:offset + page_size]]
        return HistoryEntriesResponse(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if total > 0 else 1,
        )

    def available_actions(self) -> List[str]:
        return sorted({str(entry.action) for entry in self._entries})

    def get_snapshot(self, entry_id: str) -> StructuredMatrix:
        """Parse the matrix snapshot stored on a submit/save entry"""
        entry = self.get(entry_id)
        if not entry.matrix_snapshot:
            raise ValidationError(f"History entry {entry_id} has no matrix snapshot", field="matrixSnapshot")
        try:
            return StructuredMatrix.model_validate_json(entry.matrix_snapshot)
        except ValueError as e:
            raise ValidationError(
                f"Failed to load matrix data. The format might be invalid: {e}",
                field="matrixSnapshot",
            ) from e


# Process-wide history log
history_log = HistoryLog()
