"""Org-chart construction from a flat list of employee records.

Nodes are allocated in a first pass keyed by id and wired to their managers in
a second pass, so a report may appear before its manager in the input. The
manager relation is only ever a lookup; each node owns its subordinates list.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence

from app.models.employee import EmployeeNode, EmployeeRecord

logger = logging.getLogger(__name__)


def _sort_key(node: EmployeeNode) -> int:
    return node.employee.sort_order


def build_forest(records: Sequence[EmployeeRecord]) -> list[EmployeeNode]:
    """Build the forest of root nodes for ``records``.

    A record becomes a root when it has no manager, when its manager is not
    part of ``records``, or when it names itself as manager. Siblings are
    ordered by ``sort_order``; ties keep input order. Duplicate ids resolve
    to the last record seen and are attached once.
    """
    lookup: dict[str, EmployeeNode] = {}
    for record in records:
        lookup[record.id] = EmployeeNode(employee=record)

    roots: list[EmployeeNode] = []
    attached: set[str] = set()
    for record in records:
        if record.id in attached:
            continue
        attached.add(record.id)

        node = lookup[record.id]
        manager_id = node.employee.manager_id
        if manager_id and manager_id != node.id and manager_id in lookup:
            lookup[manager_id].subordinates.append(node)
        else:
            roots.append(node)

    for node in lookup.values():
        node.subordinates.sort(key=_sort_key)
    roots.sort(key=_sort_key)

    reachable = count_nodes(roots)
    if reachable != len(lookup):
        logger.warning(
            "Org chart covers %d of %d employees; remaining records form a manager cycle",
            reachable,
            len(lookup),
        )

    return roots


def walk(
    forest: Iterable[EmployeeNode],
    expanded: set[str] | None = None,
) -> Iterator[tuple[EmployeeNode, int]]:
    """Yield ``(node, depth)`` in pre-order.

    With ``expanded`` given, only nodes whose id is in the set have their
    subordinates visited. Each id is yielded at most once.
    """
    seen: set[str] = set()
    stack: list[tuple[EmployeeNode, int]] = [(node, 0) for node in reversed(list(forest))]
    while stack:
        node, depth = stack.pop()
        if node.id in seen:
            continue
        seen.add(node.id)
        yield node, depth

        if expanded is not None and node.id not in expanded:
            continue
        for child in reversed(node.subordinates):
            stack.append((child, depth + 1))


def flatten(forest: Iterable[EmployeeNode]) -> list[EmployeeNode]:
    """Pre-order traversal: each root, then its subordinates, then the next root."""
    return [node for node, _ in walk(forest)]


def count_nodes(forest: Iterable[EmployeeNode]) -> int:
    return sum(1 for _ in walk(forest))


def _matches(node: EmployeeNode, needle: str) -> bool:
    employee = node.employee
    for value in (employee.display_name, employee.email, employee.designation, employee.department):
        if value and needle in value.lower():
            return True
    return False


def filter_by_query(flat: Sequence[EmployeeNode], query: str | None) -> list[EmployeeNode]:
    """Case-insensitive substring search over name, email, designation and department.

    A blank query returns every node in its original order.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return list(flat)
    return [node for node in flat if _matches(node, needle)]
