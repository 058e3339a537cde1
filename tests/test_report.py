"""Tests for the plain-text report renderer."""

from ticket_metrics.models import AggregationResult, Summary, percentage
from ticket_metrics.report import (
    format_summary_line,
    format_totals_line,
    format_unassigned_line,
    render,
    render_report,
    sort_by_name,
    sort_by_ticket_count,
)


def _result():
    return AggregationResult(
        summaries={
            1: Summary(display_name="carol", ticket_count=4, auto_close_count=1),
            2: Summary(display_name="Alice", ticket_count=2, auto_close_count=2),
            3: Summary(display_name="bob", ticket_count=4, auto_close_count=0),
            4: Summary(display_name="Dave", ticket_count=1, auto_close_count=0),
        },
        total_eligible=12,
        total_autoclosed=3,
        unassigned_ticket_ids=[101],
    )


def test_percentage_rounds_down():
    assert percentage(2, 3) == 66
    assert percentage(1, 1) == 100
    assert percentage(0, 5) == 0


def test_percentage_guards_zero_division():
    assert percentage(0, 0) == 0
    assert percentage(3, 0) == 0


def test_sort_by_name_is_case_insensitive():
    names = [s.display_name for s in sort_by_name(_result().summaries.values())]
    assert names == ["Alice", "bob", "carol", "Dave"]


def test_sort_by_ticket_count_is_stable():
    """Equal counts keep their input order: carol was seen before bob."""
    names = [s.display_name for s in sort_by_ticket_count(_result().summaries.values())]
    assert names == ["Dave", "Alice", "carol", "bob"]


def test_format_summary_line():
    summary = Summary(display_name="Alice", ticket_count=3, auto_close_count=1)
    assert format_summary_line(summary) == "Alice" + " " * 25 + "  3  1   33%"


def test_format_summary_line_long_name_is_not_truncated():
    name = "A" * 40
    line = format_summary_line(Summary(display_name=name, ticket_count=1))
    assert line == f"{name}  1  0   0%"


def test_format_totals_line():
    assert format_totals_line(_result()) == "12 tickets processed.  autoclosed: 3 25%"


def test_format_totals_line_with_no_tickets():
    assert format_totals_line(AggregationResult()) == "0 tickets processed.  autoclosed: 0 0%"


def test_format_unassigned_line():
    assert format_unassigned_line(42) == "no assignee for ticket 42"


def test_render_builds_both_views():
    views = render(_result())

    assert [line.split()[0] for line in views.by_name] == ["Alice", "bob", "carol", "Dave"]
    assert [line.split()[0] for line in views.by_count] == ["Dave", "Alice", "bob", "carol"]
    assert views.by_name[0].endswith("  2  2   100%")


def test_render_breaks_count_ties_by_name():
    """Agents with equal counts are listed by name, not by first sighting."""
    result = AggregationResult(
        summaries={
            1: Summary(display_name="zed", ticket_count=2),
            2: Summary(display_name="Amy", ticket_count=2),
            3: Summary(display_name="bob", ticket_count=1),
        },
        total_eligible=5,
    )

    views = render(result)

    assert [line.split()[0] for line in views.by_count] == ["bob", "Amy", "zed"]


def test_render_report_layout():
    lines = render_report(_result())

    assert lines[0] == "no assignee for ticket 101"
    assert lines[1] == "12 tickets processed.  autoclosed: 3 25%"
    assert lines[2:5] == ["", "", "Sort by name"]
    assert lines[9:12] == ["", "", "Sort by ticket count"]
    assert len(lines) == 16


def test_render_report_empty_result():
    lines = render_report(AggregationResult())

    assert lines == [
        "0 tickets processed.  autoclosed: 0 0%",
        "",
        "",
        "Sort by name",
        "",
        "",
        "Sort by ticket count",
    ]
