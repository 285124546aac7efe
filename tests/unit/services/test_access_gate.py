"""
Unit Tests for the per-matrix Access Gate
"""
import pytest

from depmatrix.core.exceptions import AccessDeniedError, MatrixNotFoundError
from depmatrix.schemas.auth import CurrentUser, UserRole
from depmatrix.services.access_gate import AccessGate, AccessState
from depmatrix.services.matrix_model import default_matrix
from depmatrix.services.matrix_store import InMemoryMatrixStore


@pytest.fixture
def gate() -> AccessGate:
    return AccessGate()


@pytest.fixture
def store() -> InMemoryMatrixStore:
    return InMemoryMatrixStore()


@pytest.fixture
async def record(store):
    return await store.create("T", "", "letmein", default_matrix(), "admin")


USER = CurrentUser(id="u1", role=UserRole.USER)
OTHER = CurrentUser(id="u2", role=UserRole.USER)
ADMIN = CurrentUser(id="a1", role=UserRole.ADMIN)


class TestAccessGate:
    """Test Locked -> Unlocked transitions"""

    def test_starts_locked(self, gate):
        assert gate.state("m1", USER) == AccessState.LOCKED
        with pytest.raises(AccessDeniedError):
            gate.require("m1", USER)

    def test_admin_always_unlocked(self, gate):
        assert gate.state("m1", ADMIN) == AccessState.UNLOCKED
        gate.require("m1", ADMIN)

    async def test_unlock_with_correct_keyword(self, gate, store, record):
        assert await gate.unlock(store, record.id, USER, "letmein") is True
        assert gate.is_unlocked(record.id, USER)
        # Unlocks are per user
        assert not gate.is_unlocked(record.id, OTHER)

    async def test_wrong_keyword_stays_locked(self, gate, store, record):
        with pytest.raises(AccessDeniedError) as exc_info:
            await gate.unlock(store, record.id, USER, "nope")

        assert exc_info.value.message == "Invalid keyword. Please try again."
        assert exc_info.value.details == {"matrix_id": record.id}
        assert not gate.is_unlocked(record.id, USER)

    async def test_retry_after_wrong_keyword(self, gate, store, record):
        with pytest.raises(AccessDeniedError):
            await gate.unlock(store, record.id, USER, "nope")
        assert await gate.unlock(store, record.id, USER, "letmein") is True

    async def test_admin_skips_keyword_check(self, gate, store):
        assert await gate.unlock(store, "does-not-exist", ADMIN, "") is True

    async def test_unknown_matrix(self, gate, store):
        with pytest.raises(MatrixNotFoundError):
            await gate.unlock(store, "does-not-exist", USER, "x")

    async def test_revoke_matrix(self, gate, store, record):
        other = await store.create("T2", "", "k2", default_matrix(), "admin")
        await gate.unlock(store, record.id, USER, "letmein")
        await gate.unlock(store, other.id, USER, "k2")

        gate.revoke_matrix(record.id)

        assert not gate.is_unlocked(record.id, USER)
        assert gate.is_unlocked(other.id, USER)
