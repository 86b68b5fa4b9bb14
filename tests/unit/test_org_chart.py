from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from app.services.hierarchy import build_forest
from scripts.org_chart import format_node, parse_args, print_org_chart, render_search, render_tree


def test_parse_args_defaults():
    args = parse_args([])
    assert args.search == ""
    assert args.collapsed is False
    assert args.verbose is False


def test_parse_args_custom():
    args = parse_args(["--search", "eng", "--collapsed", "--verbose"])
    assert args.search == "eng"
    assert args.collapsed is True
    assert args.verbose is True


def test_format_node_includes_department_and_report_count(sample_records):
    alice = build_forest(sample_records)[0]
    assert format_node(alice) == "Alice Archer - CEO [Executive] (2)"


def test_render_tree_indents_by_depth(sample_records):
    lines = render_tree(build_forest(sample_records))

    assert lines == [
        "Alice Archer - CEO [Executive] (2)",
        "    Bob Baker - VP [Operations] (1)",
        "        Dave Dunn - Eng",
        "    Carol Clark - VP [Sales]",
    ]


def test_render_tree_collapsed(sample_records):
    lines = render_tree(build_forest(sample_records), expanded=set())
    assert lines == ["Alice Archer - CEO [Executive] (2)"]


def test_render_search(sample_records):
    forest = build_forest(sample_records)

    assert render_search(forest, "dave") == ["Dave Dunn - Eng"]
    assert render_search(forest, "nobody") == ["No employees match 'nobody'"]


@pytest.mark.anyio
async def test_print_org_chart_without_store_returns_error():
    with patch("scripts.org_chart.Settings") as settings_cls:
        settings_cls.return_value.COSMOS_DB_ENDPOINT = ""
        settings_cls.return_value.COSMOS_DB_KEY = ""
        code = await print_org_chart(parse_args([]))

    assert code == 1


@pytest.mark.anyio
async def test_print_org_chart_prints_tree(sample_records, capsys):
    service = AsyncMock()
    service.initialized = True
    service.list_all_employees.return_value = sample_records

    with patch("scripts.org_chart.EmployeeService", return_value=service):
        code = await print_org_chart(parse_args(["--search", "vp"]))

    assert code == 0
    out = capsys.readouterr().out.splitlines()
    assert out == ["Bob Baker - VP [Operations] (1)", "Carol Clark - VP [Sales]"]
    service.close.assert_awaited_once()
