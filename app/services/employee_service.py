"""Cosmos DB employee directory store."""

from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Any

from azure.cosmos.aio import CosmosClient
from pydantic import ValidationError

from app.core.config import Settings
from app.models.employee import (
    EmployeeCreate,
    EmployeeDetail,
    EmployeeListItem,
    EmployeePage,
    EmployeeRecord,
    EmployeeUpdate,
    ManagerSummary,
)

logger = logging.getLogger(__name__)

_SEARCH_FIELDS = ("firstName", "lastName", "email", "designation", "department")


class EmployeeServiceError(Exception):
    pass


class EmployeeNotFoundError(EmployeeServiceError):
    def __init__(self, employee_id: str) -> None:
        super().__init__(f"Employee '{employee_id}' not found")
        self.employee_id = employee_id


class EmployeeValidationError(EmployeeServiceError):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_summary(record: EmployeeRecord) -> ManagerSummary:
    return ManagerSummary(
        id=record.id,
        first_name=record.first_name,
        last_name=record.last_name,
        designation=record.designation,
        image_url=record.image_url,
    )


def _build_filter(search: str | None, include_inactive: bool) -> tuple[str, list[dict[str, Any]]]:
    clauses: list[str] = []
    params: list[dict[str, Any]] = []

    if not include_inactive:
        clauses.append("c.isActive = true")

    if search and search.strip():
        matches = " OR ".join(f"CONTAINS(c.{field}, @search, true)" for field in _SEARCH_FIELDS)
        clauses.append(f"({matches})")
        params.append({"name": "@search", "value": search.strip()})

    where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params


class EmployeeService:
    def __init__(self) -> None:
        self.client: CosmosClient | None = None
        self.container: Any = None
        self.initialized: bool = False

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        endpoint = settings.COSMOS_DB_ENDPOINT
        key = settings.COSMOS_DB_KEY
        database_name = settings.COSMOS_DB_DATABASE
        container_name = settings.COSMOS_DB_EMPLOYEES_CONTAINER

        if not endpoint or not key:
            logger.warning("Cosmos DB credentials missing, EmployeeService not initialized")
            return

        self.client = CosmosClient(endpoint, key)
        db = self.client.get_database_client(database_name)
        self.container = db.get_container_client(container_name)
        self.initialized = True
        logger.info("EmployeeService initialized (container=%s)", container_name)

    async def close(self) -> None:
        if self.client:
            await self.client.close()
            self.client = None
            self.container = None
            self.initialized = False

    async def check_connection(self) -> bool:
        if not self.container:
            return False
        try:
            query = "SELECT VALUE COUNT(1) FROM c"
            async for _ in self.container.query_items(
                query=query,
                enable_cross_partition_query=True,
            ):
                return True
            return True
        except Exception:
            logger.exception("Cosmos DB connection check failed")
            return False

    # -- reads -------------------------------------------------------------

    async def list_employees(
        self,
        page: int = 1,
        page_size: int = 100,
        search: str | None = None,
        include_inactive: bool = False,
    ) -> EmployeePage:
        page = max(page, 1)
        if not self.container:
            return EmployeePage(page=page)

        where, params = _build_filter(search, include_inactive)
        skip = (page - 1) * page_size

        items = await self._query(
            f"SELECT * FROM c{where} ORDER BY c.sortOrder ASC OFFSET @skip LIMIT @limit",
            params + [{"name": "@skip", "value": skip}, {"name": "@limit", "value": page_size}],
        )
        counts = await self._query(f"SELECT VALUE COUNT(1) FROM c{where}", params)
        total = int(counts[0]) if counts else 0

        return EmployeePage(
            data=await self._to_list_items(items),
            total=total,
            total_pages=math.ceil(total / page_size) if page_size > 0 else 0,
            page=page,
        )

    async def list_all_employees(self) -> list[EmployeeRecord]:
        if not self.container:
            return []
        items = await self._query("SELECT * FROM c WHERE c.isActive = true ORDER BY c.sortOrder ASC")
        return self._to_records(items)

    async def count_employees(self) -> int:
        if not self.container:
            return 0
        counts = await self._query("SELECT VALUE COUNT(1) FROM c WHERE c.isActive = true")
        return int(counts[0]) if counts else 0

    async def get_employee(self, employee_id: str) -> EmployeeDetail | None:
        if not self.container:
            return None

        raw = await self._fetch_raw(employee_id)
        if raw is None:
            return None

        detail = EmployeeDetail.model_validate(raw)

        if detail.manager_id:
            manager_raw = await self._fetch_raw(detail.manager_id)
            if manager_raw is not None:
                detail.manager = _to_summary(EmployeeRecord.model_validate(manager_raw))

        reports = await self._query(
            "SELECT * FROM c WHERE c.managerId = @id ORDER BY c.sortOrder ASC",
            [{"name": "@id", "value": employee_id}],
        )
        detail.reports = [_to_summary(r) for r in self._to_records(reports) if r.id != employee_id]
        return detail

    # -- mutations ---------------------------------------------------------

    async def create_employee(self, payload: EmployeeCreate) -> EmployeeRecord:
        self._require_container()

        if payload.email:
            await self._ensure_email_available(payload.email)
        if payload.manager_id:
            await self._ensure_manager_exists(payload.manager_id)

        now = _now()
        record = EmployeeRecord(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            **payload.model_dump(),
        )
        created = await self.container.create_item(body=record.model_dump(mode="json", by_alias=True))
        logger.info("Created employee %s (%s)", record.id, record.display_name)
        return EmployeeRecord.model_validate(created)

    async def update_employee(self, employee_id: str, payload: EmployeeUpdate) -> EmployeeRecord:
        self._require_container()

        raw = await self._fetch_raw(employee_id)
        if raw is None:
            raise EmployeeNotFoundError(employee_id)

        existing = EmployeeRecord.model_validate(raw)
        changes = payload.model_dump(exclude_unset=True)

        manager_id = changes.get("manager_id")
        if manager_id == employee_id:
            raise EmployeeValidationError("Employee cannot be their own manager")

        email = changes.get("email")
        if email and email != existing.email:
            await self._ensure_email_available(email, exclude_id=employee_id)

        if manager_id and manager_id != existing.manager_id:
            await self._ensure_manager_exists(manager_id)
            if await self._reports_up_to(manager_id, employee_id):
                raise EmployeeValidationError("Manager assignment would create a reporting cycle")

        try:
            updated = EmployeeRecord.model_validate({**existing.model_dump(), **changes, "updated_at": _now()})
        except ValidationError as err:
            raise EmployeeValidationError(f"Invalid employee update: {err.error_count()} field error(s)") from err

        body = {**raw, **updated.model_dump(mode="json", by_alias=True)}
        result = await self.container.replace_item(item=employee_id, body=body)
        logger.info("Updated employee %s fields=%s", employee_id, sorted(changes))
        return EmployeeRecord.model_validate(result)

    async def delete_employee(self, employee_id: str) -> None:
        self._require_container()

        if await self._fetch_raw(employee_id) is None:
            raise EmployeeNotFoundError(employee_id)

        await self.container.delete_item(item=employee_id, partition_key=employee_id)
        logger.info("Deleted employee %s", employee_id)

    # -- helpers -----------------------------------------------------------

    def _require_container(self) -> None:
        if not self.container:
            raise EmployeeServiceError("EmployeeService not initialized")

    async def _query(self, query: str, parameters: list[dict[str, Any]] | None = None) -> list[Any]:
        items: list[Any] = []
        async for item in self.container.query_items(
            query=query,
            parameters=parameters or [],
            enable_cross_partition_query=True,
        ):
            items.append(item)
        return items

    async def _fetch_raw(self, employee_id: str) -> dict[str, Any] | None:
        items = await self._query(
            "SELECT * FROM c WHERE c.id = @id",
            [{"name": "@id", "value": employee_id}],
        )
        return items[0] if items else None

    async def _ensure_email_available(self, email: str, exclude_id: str | None = None) -> None:
        items = await self._query(
            "SELECT c.id FROM c WHERE c.email = @email",
            [{"name": "@email", "value": email}],
        )
        if any(item.get("id") != exclude_id for item in items):
            raise EmployeeValidationError("Employee with this email already exists")

    async def _ensure_manager_exists(self, manager_id: str) -> None:
        if await self._fetch_raw(manager_id) is None:
            raise EmployeeValidationError(f"Manager '{manager_id}' does not exist")

    async def _reports_up_to(self, start_id: str, target_id: str) -> bool:
        """Whether the manager chain starting at ``start_id`` reaches ``target_id``."""
        seen: set[str] = set()
        current: str | None = start_id
        while current and current not in seen:
            if current == target_id:
                return True
            seen.add(current)
            raw = await self._fetch_raw(current)
            current = raw.get("managerId") if raw else None
        return False

    async def _to_list_items(self, items: list[dict[str, Any]]) -> list[EmployeeListItem]:
        rows: list[EmployeeListItem] = []
        for item in items:
            try:
                rows.append(EmployeeListItem.model_validate(item))
            except ValidationError:
                logger.warning("Skipping malformed employee document id=%s", item.get("id"))
        if not rows:
            return rows

        manager_ids = sorted({row.manager_id for row in rows if row.manager_id})
        managers: dict[str, ManagerSummary] = {}
        if manager_ids:
            found = await self._query(
                "SELECT * FROM c WHERE ARRAY_CONTAINS(@ids, c.id)",
                [{"name": "@ids", "value": manager_ids}],
            )
            managers = {record.id: _to_summary(record) for record in self._to_records(found)}

        report_refs = await self._query(
            "SELECT c.id, c.managerId FROM c WHERE ARRAY_CONTAINS(@ids, c.managerId)",
            [{"name": "@ids", "value": [row.id for row in rows]}],
        )
        report_counts: dict[str, int] = {}
        for ref in report_refs:
            if ref.get("managerId") != ref.get("id"):
                report_counts[ref["managerId"]] = report_counts.get(ref["managerId"], 0) + 1

        for row in rows:
            if row.manager_id:
                row.manager = managers.get(row.manager_id)
            row.reports_count = report_counts.get(row.id, 0)
        return rows

    def _to_records(self, items: list[dict[str, Any]]) -> list[EmployeeRecord]:
        records: list[EmployeeRecord] = []
        for item in items:
            try:
                records.append(EmployeeRecord.model_validate(item))
            except ValidationError:
                logger.warning("Skipping malformed employee document id=%s", item.get("id"))
        return records


employee_service = EmployeeService()
