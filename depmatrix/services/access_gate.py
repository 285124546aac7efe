"""
Per-matrix access gate.

Each (matrix, user) pair starts Locked and becomes Unlocked once the user
presents the matrix's access keyword. Admins always pass. Unlocks live for
the lifetime of the process session.
"""

from enum import Enum
from typing import Set, Tuple

from depmatrix.core.exceptions import AccessDeniedError
from depmatrix.core.logging_config import logger
from depmatrix.schemas.auth import CurrentUser
from depmatrix.services.matrix_store import MatrixStore


class AccessState(str, Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class AccessGate:

    def __init__(self):
        self._unlocked: Set[Tuple[str, str]] = set()

    def state(self, matrix_id: str, user: CurrentUser) -> AccessState:
        if user.is_admin or (matrix_id, user.id) in self._unlocked:
            return AccessState.UNLOCKED
        return AccessState.LOCKED

    def is_unlocked(self, matrix_id: str, user: CurrentUser) -> bool:
        return self.state(matrix_id, user) == AccessState.UNLOCKED

    async def unlock(self, store: MatrixStore, matrix_id: str, user: CurrentUser, keyword: str) -> bool:
        """Check ``keyword`` against the stored one and unlock on a match.

        Raises:
            AccessDeniedError: keyword mismatch (caller should re-prompt)
            MatrixNotFoundError: unknown matrix
        """
        if user.is_admin:
            return True

        if not await store.verify_keyword(matrix_id, keyword):
            logger.log_auth_event("matrix_unlock", False, username=user.id, reason="keyword mismatch")
            raise AccessDeniedError(matrix_id, "Invalid keyword. Please try again.")

        self._unlocked.add((matrix_id, user.id))
        logger.log_auth_event("matrix_unlock", True, username=user.id)
        return True

    def require(self, matrix_id: str, user: CurrentUser) -> None:
        """Raise AccessDeniedError unless the user may read and edit the matrix"""
        if not self.is_unlocked(matrix_id, user):
            raise AccessDeniedError(matrix_id, "Access keyword required for this matrix")

    def revoke_matrix(self, matrix_id: str) -> None:
        """Forget every unlock for a matrix (deleted, or keyword changed)"""
        self._unlocked = {pair for pair in self._unlocked if pair[0] != matrix_id}

    def clear(self) -> None:
        self._unlocked.clear()


# Process-wide gate
access_gate = AccessGate()
