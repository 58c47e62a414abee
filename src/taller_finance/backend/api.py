"""Async client for the workshop backend's generated REST API.

The backend exposes each table under ``/rest/v1/<table>`` with PostgREST
query conventions (``select``, ``order``, ``offset``/``limit`` and
``column=eq.value`` filters). Access control is enforced server-side by
row-level security, keyed on the bearer token.
"""

import asyncio
from collections.abc import Iterable
from datetime import tzinfo
from typing import Any

import httpx
import structlog

from taller_finance.backend.rows import (
    CLIENTS_TABLE,
    EXPENSES_TABLE,
    JOBS_TABLE,
    client_from_row,
    expense_from_row,
    expense_to_row,
    job_from_row,
    line_item_to_row,
)
from taller_finance.config import get_settings
from taller_finance.models import Client, Expense, Job, JobStatus, LineItem

logger = structlog.get_logger(__name__)

REST_PREFIX = "/rest/v1"

Row = dict[str, Any]


class BackendError(Exception):
    """Base exception for backend API errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class AuthenticationError(BackendError):
    """The API key or access token was rejected."""

    pass


class RateLimitError(BackendError):
    """Rate limit exceeded."""

    @property
    def retry_after(self) -> int | None:
        if isinstance(self.details, dict):
            return self.details.get("retry_after")
        return None


class WorkshopAPIClient:
    """Async client for the workshop tables (jobs, expenses, clients)."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        page_size: int | None = None,
        tz: tzinfo | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self._api_key = api_key or settings.supabase_key.get_secret_value()
        if access_token is None and settings.supabase_access_token is not None:
            access_token = settings.supabase_access_token.get_secret_value()
        self._access_token = access_token
        self._timeout = timeout if timeout is not None else settings.supabase_timeout
        self._max_retries = (
            max_retries if max_retries is not None else settings.supabase_max_retries
        )
        self._page_size = page_size or settings.supabase_page_size
        self._tz = tz if tz is not None else settings.tzinfo()

        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "WorkshopAPIClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _get_headers(self, prefer: str | None = None) -> dict[str, str]:
        """Request headers: the project key plus the caller's bearer token."""
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._access_token or self._api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    # === Generic Request Methods ===

    async def _request(
        self,
        method: str,
        table: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
        prefer: str | None = None,
        retry_count: int = 0,
    ) -> list[Row]:
        """Make a table request with retry on transport failures."""
        client = await self._get_client()
        try:
            response = await client.request(
                method=method,
                url=f"{REST_PREFIX}/{table}",
                params=params,
                json=json,
                headers=self._get_headers(prefer),
            )
        except httpx.RequestError as e:
            if retry_count < self._max_retries:
                logger.warning(
                    "backend_request_retry",
                    table=table,
                    method=method,
                    attempt=retry_count + 1,
                    error=str(e),
                )
                await asyncio.sleep(2**retry_count)  # Exponential backoff
                return await self._request(method, table, params, json, prefer, retry_count + 1)
            raise BackendError(f"Request failed: {e}") from e

        if response.status_code in (401, 403):
            raise AuthenticationError(
                "Backend rejected credentials",
                status_code=response.status_code,
                details=self._error_details(response),
            )

        if response.status_code == 429:
            retry_after = int(response.headers.get("Retry-After", "60"))
            raise RateLimitError(
                f"Rate limited, retry after {retry_after}s",
                status_code=429,
                details={"retry_after": retry_after},
            )

        if response.status_code >= 400:
            raise BackendError(
                f"API error: {response.status_code}",
                status_code=response.status_code,
                details=self._error_details(response),
            )

        if not response.content:
            return []
        data = response.json()
        if isinstance(data, dict):
            return [data]
        if not isinstance(data, list):
            raise BackendError(f"Invalid response format from {table}")
        return data

    @staticmethod
    def _error_details(response: httpx.Response) -> Any:
        try:
            return response.json() if response.content else {}
        except ValueError:
            return {"raw": response.text[:500] if response.text else "empty response"}

    async def _fetch_all(self, table: str, order: str, select: str = "*") -> list[Row]:
        """Fetch every row of a table, one page at a time.

        ``order`` must be a total order (end it with a unique column) so rows
        never shift between pages. Paging stops at the first empty page: the
        server may cap a page below ``limit``, so a short page is not the end.
        """
        rows: list[Row] = []
        offset = 0
        while True:
            params: dict[str, Any] = {
                "select": select,
                "offset": offset,
                "limit": self._page_size,
                "order": order,
            }
            batch = await self._request("GET", table, params=params)
            if not batch:
                break
            rows.extend(batch)
            offset += len(batch)
        logger.debug("table_fetched", table=table, rows=len(rows))
        return rows

    # === Reads ===

    async def list_jobs(self) -> list[Job]:
        """All jobs visible to the caller, newest intake first."""
        rows = await self._fetch_all(JOBS_TABLE, order="fecha_entrada.desc,id.desc")
        return [job_from_row(row, self._tz) for row in rows]

    async def list_expenses(self) -> list[Expense]:
        """All expenses visible to the caller, newest first."""
        rows = await self._fetch_all(EXPENSES_TABLE, order="fecha.desc,id.desc")
        return [expense_from_row(row, self._tz) for row in rows]

    async def list_clients(self) -> list[Client]:
        """All clients with their vehicles embedded."""
        rows = await self._fetch_all(CLIENTS_TABLE, order="id.asc", select="*,vehiculos(*)")
        return [client_from_row(row) for row in rows]

    # === Writes ===

    async def create_expenses(
        self, expenses: Iterable[Expense], workshop_id: str | None = None
    ) -> list[Expense]:
        """Insert expense drafts and return them as stored."""
        payload = [expense_to_row(e, workshop_id) for e in expenses]
        if not payload:
            return []
        rows = await self._request(
            "POST", EXPENSES_TABLE, json=payload, prefer="return=representation"
        )
        logger.info("expenses_created", count=len(payload))
        return [expense_from_row(row, self._tz) for row in rows]

    async def update_expense(self, expense: Expense) -> None:
        """Overwrite a stored expense's editable columns."""
        if expense.id is None:
            raise ValueError("cannot update an expense without an id")
        await self._request(
            "PATCH",
            EXPENSES_TABLE,
            params={"id": f"eq.{expense.id}"},
            json=expense_to_row(expense),
        )
        logger.info("expense_updated", expense_id=expense.id)

    async def delete_expense(self, expense_id: str) -> None:
        await self._request("DELETE", EXPENSES_TABLE, params={"id": f"eq.{expense_id}"})
        logger.info("expense_deleted", expense_id=expense_id)

    async def update_job_status(self, job_id: str, status: JobStatus) -> None:
        await self._request(
            "PATCH",
            JOBS_TABLE,
            params={"id": f"eq.{job_id}"},
            json={"status": status.value},
        )
        logger.info("job_status_updated", job_id=job_id, status=status.value)

    async def update_job_line_items(self, job_id: str, line_items: Iterable[LineItem]) -> None:
        """Replace a job's stored ``partes`` (real items and payments)."""
        partes = [line_item_to_row(item) for item in line_items]
        await self._request(
            "PATCH",
            JOBS_TABLE,
            params={"id": f"eq.{job_id}"},
            json={"partes": partes},
        )
        logger.info("job_line_items_updated", job_id=job_id, items=len(partes))
