"""
DepMatrix - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator, Callable

import pytest
from httpx import AsyncClient, ASGITransport
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['STORAGE_MODE'] = 'memory'
os.environ['PERSISTENCE_API_URL'] = 'http://persistence.test'
os.environ['PUBLIC_BASE_URL'] = 'http://matrix.test'

from depmatrix.main import app
from depmatrix.core.security import create_access_token
from depmatrix.schemas.auth import CurrentUser, UserRole
from depmatrix.schemas.matrix import MatrixItem
from depmatrix.services.access_gate import access_gate
from depmatrix.services.history_service import history_log
from depmatrix.services.matrix_model import default_matrix
from depmatrix.services.matrix_store import memory_store

fake = Faker()

MATRIX_KEYWORD = 'open-sesame'


@pytest.fixture
def matrix_keyword() -> str:
    return MATRIX_KEYWORD


@pytest.fixture(autouse=True)
def reset_state():
    """Every test starts with an empty store, log and gate"""
    memory_store.clear()
    history_log.clear()
    access_gate.clear()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Test client bound to the ASGI app"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac


@pytest.fixture
def test_user() -> CurrentUser:
    return CurrentUser(id=str(fake.uuid4()), role=UserRole.USER, username=fake.user_name())


@pytest.fixture
def admin_user() -> CurrentUser:
    return CurrentUser(id=str(fake.uuid4()), role=UserRole.ADMIN, username=fake.user_name())


def make_headers(user: CurrentUser) -> dict:
    token = create_access_token({
        'sub': user.id,
        'role': user.role.value,
        'username': user.username,
        'upstream_token': 'upstream-token',
    })
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def auth_headers(test_user: CurrentUser) -> dict:
    """Authentication headers for a regular user"""
    return make_headers(test_user)


@pytest.fixture
def admin_headers(admin_user: CurrentUser) -> dict:
    """Authentication headers for an admin"""
    return make_headers(admin_user)


@pytest.fixture
async def matrix(admin_user: CurrentUser) -> MatrixItem:
    """A stored matrix seeded with the three default attributes"""
    return await memory_store.create(
        title=fake.sentence(nb_words=3),
        description=fake.sentence(),
        keyword=MATRIX_KEYWORD,
        data=default_matrix(),
        created_by=admin_user.id,
    )


@pytest.fixture
def unlock(client: AsyncClient, matrix: MatrixItem) -> Callable:
    """Coroutine that unlocks the fixture matrix for the given headers"""
    async def _unlock(headers: dict):
        response = await client.post(
            f'/api/v1/matrices/{matrix.id}/verify',
            json={'keyword': MATRIX_KEYWORD},
            headers=headers,
        )
        assert response.status_code == 200
        return response
    return _unlock
