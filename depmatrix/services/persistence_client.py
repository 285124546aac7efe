"""
Persistence & Auth Service Clients
==================================

Thin ``httpx.AsyncClient`` wrappers around the external REST backend that
stores matrix records and user accounts.

Endpoints consumed:
    GET    /api/matrix                 list records
    GET    /api/matrix/{id}            one record
    POST   /api/matrix                 create
    PUT    /api/matrix/{id}            whole-document replace
    DELETE /api/matrix/{id}            delete
    POST   /api/matrix/{id}/verify     {keyword} -> {authorized}
    POST   /api/auth/login             {username, password} -> {token, user}
    POST   /api/auth/register
    GET    /api/auth/me
    GET    /api/auth/users
    PUT    /api/auth/users/role

Failures are not retried. Transport errors and 5xx responses become
``PersistenceError``; callers surface them as a transient notice.
"""

import time
from typing import Any, Dict, List, Optional

import httpx

from depmatrix.core.config import settings
from depmatrix.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    MatrixNotFoundError,
    PersistenceError,
    ValidationError,
)
from depmatrix.core.logging_config import logger
from depmatrix.schemas.matrix import MatrixItem


class BaseServiceClient:
    """Shared request plumbing for the backend clients"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.PERSISTENCE_API_URL).rstrip("/")
        self.token = token
        self._transport = transport
        self._timeout = httpx.Timeout(
            timeout or settings.PERSISTENCE_TIMEOUT,
            connect=settings.PERSISTENCE_CONNECT_TIMEOUT,
        )
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_headers(self, token: Optional[str] = None) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        bearer = token or self.token
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return headers

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> httpx.Response:
        """Send one request; raises PersistenceError on transport failure or 5xx"""
        client = await self._ensure_client()
        start_time = time.perf_counter()
        try:
            response = await client.request(
                method, endpoint, json=json, headers=self._get_headers(token)
            )
        except httpx.HTTPError as e:
            logger.log_error_with_context(e, context=f"{method} {endpoint}")
            raise PersistenceError(f"Persistence Service unreachable: {e}") from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.log_upstream_call(method, endpoint, response.status_code, duration_ms)

        if response.status_code >= 500:
            raise PersistenceError(
                f"Persistence Service error on {method} {endpoint}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise PersistenceError(
                "Persistence Service returned a non-JSON body",
                status_code=response.status_code,
            ) from e

    @staticmethod
    def _error_message(response: httpx.Response, default: str) -> str:
        try:
            body = response.json()
        except ValueError:
            return default
        if isinstance(body, dict):
            return body.get("message") or body.get("detail") or body.get("error") or default
        return default

    def _raise_for_client_error(self, response: httpx.Response, matrix_id: Optional[str] = None) -> None:
        status_code = response.status_code
        if status_code < 400:
            return
        if status_code == 404 and matrix_id is not None:
            raise MatrixNotFoundError(matrix_id)
        if status_code == 401:
            raise AuthenticationError(self._error_message(response, "Authentication failed"))
        if status_code == 403:
            raise AuthorizationError(self._error_message(response, "Not authorized"))
        if status_code in (400, 422):
            raise ValidationError(self._error_message(response, "Request rejected by Persistence Service"))
        raise PersistenceError(
            self._error_message(response, f"Unexpected status {status_code}"),
            status_code=status_code,
        )


class MatrixServiceClient(BaseServiceClient):
    """Matrix record CRUD and access-keyword verification"""

    async def list_matrices(self) -> List[MatrixItem]:
        response = await self._request("GET", "/api/matrix")
        self._raise_for_client_error(response)
        return [MatrixItem.model_validate(item) for item in self._json(response)]

    async def get_matrix(self, matrix_id: str) -> MatrixItem:
        response = await self._request("GET", f"/api/matrix/{matrix_id}")
        self._raise_for_client_error(response, matrix_id=matrix_id)
        return MatrixItem.model_validate(self._json(response))

    async def create_matrix(self, payload: Dict[str, Any]) -> MatrixItem:
        response = await self._request("POST", "/api/matrix", json=payload)
        self._raise_for_client_error(response)
        return MatrixItem.model_validate(self._json(response))

    async def update_matrix(self, matrix_id: str, record: MatrixItem) -> MatrixItem:
        response = await self._request(
            "PUT", f"/api/matrix/{matrix_id}", json=record.model_dump(by_alias=True)
        )
        self._raise_for_client_error(response, matrix_id=matrix_id)
        body = self._json(response)
        # Some deployments answer with a bare confirmation instead of the record
        if isinstance(body, dict) and "data" in body and "id" in body:
            return MatrixItem.model_validate(body)
        return record

    async def delete_matrix(self, matrix_id: str) -> Dict[str, Any]:
        response = await self._request("DELETE", f"/api/matrix/{matrix_id}")
        self._raise_for_client_error(response, matrix_id=matrix_id)
        if not response.content:
            return {"success": True}
        return self._json(response)

    async def verify_matrix_access(self, matrix_id: str, keyword: str) -> bool:
        response = await self._request(
            "POST", f"/api/matrix/{matrix_id}/verify", json={"keyword": keyword}
        )
        if response.status_code in (401, 403):
            return False
        self._raise_for_client_error(response, matrix_id=matrix_id)
        return bool(self._json(response).get("authorized", False))


class AuthServiceClient(BaseServiceClient):
    """User login, registration and role management"""

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        """Returns ``{"token": ..., "user": {"id": ..., "role": ...}}``"""
        response = await self._request(
            "POST", "/api/auth/login", json={"username": username, "password": password}
        )
        if response.status_code in (400, 401, 403, 404):
            logger.log_auth_event("login", False, username=username, reason=f"HTTP {response.status_code}")
            raise AuthenticationError(self._error_message(response, "Invalid username or password"))
        self._raise_for_client_error(response)

        body = self._json(response)
        if not body.get("token") or not body.get("user"):
            raise PersistenceError("Auth Service login response missing token or user")
        logger.log_auth_event("login", True, username=username)
        return body

    async def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        response = await self._request(
            "POST",
            "/api/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        self._raise_for_client_error(response)
        return self._json(response)

    async def get_current_user(self, token: str) -> Optional[Dict[str, Any]]:
        """User behind ``token``, or None when the token is no longer accepted"""
        response = await self._request("GET", "/api/auth/me", token=token)
        if response.status_code in (401, 403):
            return None
        self._raise_for_client_error(response)
        user = self._json(response)
        user["token"] = token
        return user

    async def logout(self) -> Dict[str, Any]:
        # Tokens are stateless upstream; dropping the local copy is enough
        self.token = None
        return {"success": True}

    async def list_users(self) -> List[Dict[str, Any]]:
        response = await self._request("GET", "/api/auth/users")
        self._raise_for_client_error(response)
        return self._json(response)

    async def update_user_role(self, user_id: str, new_role: str) -> Dict[str, Any]:
        response = await self._request(
            "PUT", "/api/auth/users/role", json={"userId": user_id, "newRole": new_role}
        )
        self._raise_for_client_error(response)
        return self._json(response)
