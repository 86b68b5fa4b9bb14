#!/usr/bin/env python3
"""Print the company org chart from the employee directory.

Run from the repository root:

    python3 scripts/org_chart.py [--search TERM] [--collapsed] [--verbose]

Reads all active employees from Cosmos DB (read-only), builds the reporting
forest and prints it as an indented tree, or as a flat list of matches when
a search term is given.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Iterable

_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from app.core.config import Settings  # noqa: E402
from app.models.employee import EmployeeNode  # noqa: E402
from app.services.employee_service import EmployeeService  # noqa: E402
from app.services.hierarchy import build_forest, filter_by_query, flatten, walk  # noqa: E402

logger = logging.getLogger(__name__)

INDENT = "    "


def format_node(node: EmployeeNode, depth: int = 0) -> str:
    employee = node.employee
    line = f"{INDENT * depth}{employee.display_name} - {employee.designation}"
    if employee.department:
        line += f" [{employee.department}]"
    if node.subordinates:
        line += f" ({len(node.subordinates)})"
    return line


def render_tree(forest: Iterable[EmployeeNode], expanded: set[str] | None = None) -> list[str]:
    return [format_node(node, depth) for node, depth in walk(forest, expanded=expanded)]


def render_search(forest: list[EmployeeNode], term: str) -> list[str]:
    matches = filter_by_query(flatten(forest), term)
    if not matches:
        return [f"No employees match '{term}'"]
    return [format_node(node) for node in matches]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Print the employee org chart")
    parser.add_argument(
        "--search",
        default="",
        help="Show a flat list of employees matching this term instead of the tree",
    )
    parser.add_argument(
        "--collapsed",
        action="store_true",
        help="Only print top-level employees",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    return parser.parse_args(argv)


async def print_org_chart(args: argparse.Namespace) -> int:
    settings = Settings()
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")

    service = EmployeeService()
    await service.initialize(settings)
    if not service.initialized:
        logger.error("Cosmos DB is not configured; set COSMOS_DB_ENDPOINT and COSMOS_DB_KEY")
        return 1

    try:
        logger.info("Fetching all employees...")
        employees = await service.list_all_employees()
    finally:
        await service.close()

    logger.info("Found %d employees", len(employees))
    forest = build_forest(employees)

    if args.search.strip():
        lines = render_search(forest, args.search)
    else:
        lines = render_tree(forest, expanded=set() if args.collapsed else None)

    for line in lines:
        print(line)
    return 0


def main() -> None:
    args = parse_args()
    sys.exit(asyncio.run(print_org_chart(args)))


if __name__ == "__main__":
    main()
