"""Plain-text rendering of aggregation results."""

from collections.abc import Iterable
from typing import NamedTuple

from ticket_metrics.models import AggregationResult, Summary

NAME_WIDTH = 30


class ReportViews(NamedTuple):
    """Formatted lines of the two sorted views."""

    by_name: list[str]
    by_count: list[str]


def sort_by_name(summaries: Iterable[Summary]) -> list[Summary]:
    """Case-insensitive ascending by display name."""
    return sorted(summaries, key=lambda s: s.display_name.casefold())


def sort_by_ticket_count(summaries: Iterable[Summary]) -> list[Summary]:
    """Ascending by ticket count; equal counts keep their input order."""
    return sorted(summaries, key=lambda s: s.ticket_count)


def format_summary_line(summary: Summary) -> str:
    return (
        f"{summary.display_name:<{NAME_WIDTH}}  {summary.ticket_count}  "
        f"{summary.auto_close_count}   {summary.auto_close_percentage}%"
    )


def format_totals_line(result: AggregationResult) -> str:
    return (
        f"{result.total_eligible} tickets processed.  "
        f"autoclosed: {result.total_autoclosed} {result.overall_percentage}%"
    )


def format_unassigned_line(ticket_id: int) -> str:
    return f"no assignee for ticket {ticket_id}"


def render(result: AggregationResult) -> ReportViews:
    """Format the name-sorted and count-sorted views of the summaries.

    The count view re-sorts the name view, so equal counts are listed by name.
    """
    by_name = sort_by_name(result.summaries.values())
    return ReportViews(
        by_name=[format_summary_line(s) for s in by_name],
        by_count=[format_summary_line(s) for s in sort_by_ticket_count(by_name)],
    )


def render_report(result: AggregationResult) -> list[str]:
    """Build every output line that follows the date confirmation.

    The totals line counts unassigned tickets while the per-agent lines
    cannot, so the overall percentage is not an average of the agent rows.
    """
    views = render(result)
    lines = [format_unassigned_line(tid) for tid in result.unassigned_ticket_ids]
    lines.append(format_totals_line(result))
    lines.extend(["", "", "Sort by name"])
    lines.extend(views.by_name)
    lines.extend(["", "", "Sort by ticket count"])
    lines.extend(views.by_count)
    return lines
