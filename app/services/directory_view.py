"""Per-view org-chart state: expanded nodes, search mode and paging."""

from __future__ import annotations

import logging
from typing import Protocol

from app.models.employee import EmployeeNode, EmployeePage
from app.services.hierarchy import build_forest, filter_by_query, flatten, walk

logger = logging.getLogger(__name__)


class EmployeeSource(Protocol):
    async def list_employees(
        self,
        page: int = 1,
        page_size: int = 100,
        search: str | None = None,
        include_inactive: bool = False,
    ) -> EmployeePage: ...


class DirectoryView:
    """State behind one rendered employee directory.

    Every ``refresh`` bumps a generation counter; a response that arrives after
    a newer fetch was started is dropped so older pages never overwrite newer
    ones. Expanded ids are kept across rebuilds while the ids still exist.
    """

    def __init__(self, source: EmployeeSource, page_size: int = 100) -> None:
        self.source = source
        self.page_size = page_size
        self.page = 1
        self.search_term = ""
        self.expanded: set[str] = set()
        self.forest: list[EmployeeNode] = []
        self.total = 0
        self.total_pages = 0
        self._generation = 0

    @property
    def search_mode(self) -> bool:
        return bool(self.search_term.strip())

    def set_search(self, term: str) -> None:
        if term != self.search_term:
            self.search_term = term
            self.page = 1

    def set_page(self, page: int) -> None:
        self.page = max(page, 1)

    def is_expanded(self, employee_id: str) -> bool:
        return employee_id in self.expanded

    def expand(self, employee_id: str) -> None:
        self.expanded.add(employee_id)

    def collapse(self, employee_id: str) -> None:
        self.expanded.discard(employee_id)

    def toggle(self, employee_id: str) -> None:
        if employee_id in self.expanded:
            self.expanded.discard(employee_id)
        else:
            self.expanded.add(employee_id)

    def expand_all(self) -> None:
        self.expanded = {node.id for node in flatten(self.forest) if node.subordinates}

    def collapse_all(self) -> None:
        self.expanded = set()

    async def refresh(self) -> bool:
        """Fetch the current page and rebuild the forest.

        Returns False when the response was superseded by a later refresh.
        """
        self._generation += 1
        generation = self._generation

        result = await self.source.list_employees(
            page=self.page,
            page_size=self.page_size,
            search=self.search_term or None,
        )

        if generation != self._generation:
            logger.debug("Discarding stale directory page (generation %d < %d)", generation, self._generation)
            return False

        self.forest = build_forest(result.data)
        self.total = result.total
        self.total_pages = result.total_pages
        present = {node.id for node in flatten(self.forest)}
        self.expanded &= present
        return True

    def visible_rows(self) -> list[tuple[EmployeeNode, int]]:
        if self.search_mode:
            return [(node, 0) for node in filter_by_query(flatten(self.forest), self.search_term)]
        return list(walk(self.forest, expanded=self.expanded))
