from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status

from app.core.config import settings
from app.models.employee import (
    EmployeeCreate,
    EmployeeDetail,
    EmployeePage,
    EmployeeRecord,
    EmployeeUpdate,
    HierarchyResponse,
)
from app.services.employee_service import (
    EmployeeNotFoundError,
    EmployeeServiceError,
    EmployeeValidationError,
    employee_service,
)
from app.services.hierarchy import build_forest, filter_by_query, flatten

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])


def _page_size(limit: int | None) -> int:
    return limit if limit is not None else settings.DEFAULT_PAGE_SIZE


async def _fetch_page(page: int, limit: int | None, search: str | None, include_inactive: bool) -> EmployeePage:
    try:
        return await employee_service.list_employees(
            page=page,
            page_size=_page_size(limit),
            search=search,
            include_inactive=include_inactive,
        )
    except Exception as err:
        logger.exception("Failed to list employees")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch employees",
        ) from err


def _mutation_error(err: EmployeeServiceError) -> HTTPException:
    if isinstance(err, EmployeeNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    if isinstance(err, EmployeeValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err))
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(err))


@router.get("", response_model=EmployeePage)
async def list_employees(
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1, le=settings.MAX_PAGE_SIZE),
    search: str | None = None,
    include_inactive: bool = Query(False, alias="includeInactive"),
):
    return await _fetch_page(page, limit, search, include_inactive)


@router.get("/hierarchy", response_model=HierarchyResponse)
async def get_hierarchy(
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1, le=settings.MAX_PAGE_SIZE),
    search: str | None = None,
):
    result = await _fetch_page(page, limit, search, include_inactive=False)
    forest = build_forest(result.data)

    if search and search.strip():
        matches = filter_by_query(flatten(forest), search)
        return HierarchyResponse(
            mode="search",
            results=[node.employee for node in matches],
            total=result.total,
            total_pages=result.total_pages,
            page=result.page,
        )

    return HierarchyResponse(
        mode="tree",
        forest=forest,
        total=result.total,
        total_pages=result.total_pages,
        page=result.page,
    )


@router.get("/{employee_id}", response_model=EmployeeDetail)
async def get_employee(employee_id: str):
    try:
        employee = await employee_service.get_employee(employee_id)
    except Exception as err:
        logger.exception("Failed to get employee %s", employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch employee",
        ) from err

    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee not found",
        )

    return employee


@router.post("", response_model=EmployeeRecord, status_code=status.HTTP_201_CREATED)
async def create_employee(payload: EmployeeCreate):
    try:
        return await employee_service.create_employee(payload)
    except EmployeeServiceError as err:
        logger.warning("Rejected employee create: %s", err)
        raise _mutation_error(err) from err
    except Exception as err:
        logger.exception("Failed to create employee")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create employee",
        ) from err


@router.put("/{employee_id}", response_model=EmployeeRecord)
async def update_employee(employee_id: str, payload: EmployeeUpdate):
    try:
        return await employee_service.update_employee(employee_id, payload)
    except EmployeeServiceError as err:
        logger.warning("Rejected update of employee %s: %s", employee_id, err)
        raise _mutation_error(err) from err
    except Exception as err:
        logger.exception("Failed to update employee %s", employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update employee",
        ) from err


@router.delete("/{employee_id}")
async def delete_employee(employee_id: str):
    try:
        await employee_service.delete_employee(employee_id)
    except EmployeeServiceError as err:
        logger.warning("Rejected delete of employee %s: %s", employee_id, err)
        raise _mutation_error(err) from err
    except Exception as err:
        logger.exception("Failed to delete employee %s", employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete employee",
        ) from err

    return {"message": "Employee deleted successfully"}
