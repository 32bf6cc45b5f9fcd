"""HTTP client for the HRIS employee API."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from hrisync.adapters.http_resilience import ResilientClient
from hrisync.config import HrisConfig, get_hris_config
from hrisync.domain.errors import FetchError, NetworkError, SchemaError
from hrisync.domain.ports import ConnectionCheck, EmployeeFilter

from .schema import EmployeesResponse
from .translator import parse_employee, parse_employees

if TYPE_CHECKING:
    from collections.abc import Callable

    from hrisync.config import ResilienceConfig
    from hrisync.domain.model import ExternalEmployee
    from hrisync.domain.ports import EmployeeSource

log = getLogger(__name__)

EMPLOYEES_PATH = "/api/v1/employees"
UPDATED_EMPLOYEES_PATH = "/api/v1/employees/updated"
HEALTH_PATH = "/api/v1/health"


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _iso_utc(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


@dataclass(slots=True)
class HrisClient:
    """Bearer-authenticated client for the HRIS REST API.

    Only GET requests are issued, so every fetch is safe to repeat. Pages after the
    first are requested concurrently, bounded by ``max_concurrent_pages``, and
    returned in page order.
    """

    config: HrisConfig = field(default_factory=get_hris_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def fetch_all(self, employee_filter: EmployeeFilter | None = None) -> list[ExternalEmployee]:
        return asyncio.run(self._fetch_all_async(employee_filter or EmployeeFilter()))

    def fetch_one(self, employee_id: str) -> ExternalEmployee | None:
        return asyncio.run(self._fetch_one_async(employee_id))

    def fetch_since(self, since: datetime) -> list[ExternalEmployee]:
        return asyncio.run(self._fetch_since_async(since))

    def test_connection(self) -> ConnectionCheck:
        try:
            asyncio.run(self._check_health_async())
        except FetchError as exc:
            return ConnectionCheck(success=False, error=str(exc))
        except Exception as exc:  # noqa: BLE001
            log.warning("HRIS health check failed unexpectedly: %s", exc)
            return ConnectionCheck(success=False, error=str(exc) or type(exc).__name__)
        return ConnectionCheck(success=True)

    async def _fetch_all_async(self, employee_filter: EmployeeFilter) -> list[ExternalEmployee]:
        page_size = employee_filter.page_size or self.config.page_size
        status = employee_filter.status.value if employee_filter.status else None

        async with self.client_factory(self.config.resilience) as client:

            async def fetch_page(page: int) -> EmployeesResponse:
                params: dict[str, str | int] = {"page": page, "page_size": page_size}
                if status is not None:
                    params["status"] = status
                response = await self._perform_request(client, EMPLOYEES_PATH, params=params)
                if response is None:
                    raise NetworkError(
                        "HRIS API returned 404 for employee listing", status_code=404
                    )
                return response

            if employee_filter.page is not None:
                return parse_employees((await fetch_page(employee_filter.page)).data)

            first = await fetch_page(1)
            pages = [first]
            if first.has_more and first.pagination is not None:
                semaphore = asyncio.Semaphore(self.config.max_concurrent_pages)

                async def bounded(page: int) -> EmployeesResponse:
                    async with semaphore:
                        return await fetch_page(page)

                last_page = first.pagination.last_page
                try:
                    async with asyncio.TaskGroup() as group:
                        tasks = [group.create_task(bounded(p)) for p in range(2, last_page + 1)]
                except ExceptionGroup as failed:
                    # sibling pages are cancelled by now; surface the first failure as-is
                    for extra in failed.exceptions[1:]:
                        log.warning("Concurrent page fetch also failed: %s", extra)
                    raise failed.exceptions[0] from None
                pages.extend(task.result() for task in tasks)
                # the reported total can lag behind; keep going while more is announced
                page = last_page
                while pages[-1].has_more:
                    page += 1
                    pages.append(await fetch_page(page))

        employees = [employee for response in pages for employee in parse_employees(response.data)]
        log.info("Fetched %d employees across %d page(s)", len(employees), len(pages))
        return employees

    async def _fetch_one_async(self, employee_id: str) -> ExternalEmployee | None:
        path = f"{EMPLOYEES_PATH}/{quote(employee_id, safe='')}"
        async with self.client_factory(self.config.resilience) as client:
            response = await self._perform_request(client, path, allow_not_found=True)
        if response is None or not response.data:
            return None
        return parse_employee(response.data[0])

    async def _fetch_since_async(self, since: datetime) -> list[ExternalEmployee]:
        async with self.client_factory(self.config.resilience) as client:
            response = await self._perform_request(
                client,
                UPDATED_EMPLOYEES_PATH,
                params={"since": _iso_utc(since)},
            )
        return parse_employees(response.data if response is not None else None)

    async def _check_health_async(self) -> None:
        async with self.client_factory(self.config.resilience) as client:
            response = await self._send(client, HEALTH_PATH)
        if response.is_error:
            raise NetworkError(
                f"HRIS API returned {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )

    async def _perform_request(
        self,
        client: ResilientClient,
        path: str,
        *,
        params: dict[str, str | int] | None = None,
        allow_not_found: bool = False,
    ) -> EmployeesResponse | None:
        response = await self._send(client, path, params=params)
        if allow_not_found and response.status_code == httpx.codes.NOT_FOUND:
            return None
        if response.is_error:
            log.error("HRIS API returned %s for %s", response.status_code, path)
            raise NetworkError(
                f"HRIS API returned {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise SchemaError(f"HRIS response for {path} is not valid JSON") from exc
        try:
            parsed = EmployeesResponse.model_validate(payload)
        except ValidationError as exc:
            raise SchemaError(f"Unexpected HRIS response payload for {path}: {exc}") from exc

        if not parsed.success:
            raise NetworkError(f"HRIS API error: {parsed.error or 'Unknown error'}")
        return parsed

    async def _send(
        self,
        client: ResilientClient,
        path: str,
        *,
        params: dict[str, str | int] | None = None,
    ) -> httpx.Response:
        try:
            return await client.get(path, params=params)
        except httpx.TimeoutException as exc:
            timeout = self.config.resilience.timeout_seconds
            raise NetworkError(f"HRIS request to {path} timed out after {timeout}s") from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"HRIS request to {path} failed: {exc}") from exc


if TYPE_CHECKING:
    _source_check: EmployeeSource = HrisClient()
