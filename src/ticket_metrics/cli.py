"""ticket-metrics CLI - per-agent closed and auto-closed ticket counts."""

import logging
import os
import re
from datetime import date, datetime
from typing import Annotated

import typer

from ticket_metrics import operations
from ticket_metrics.client import ZendeskAPIError, ZendeskAuthError, ZendeskClient, ZendeskClientError
from ticket_metrics.report import render_report

DATE_FORMAT = "%Y-%m-%d"
_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")

# Exit statuses; 2 is left to typer for usage errors
EXIT_CONNECTION_ERROR = 1
EXIT_CREDENTIALS_ERROR = 5
EXIT_DATE_ERROR = 6

LOG_LEVEL_ENV = "TICKET_METRICS_LOG_LEVEL"

app = typer.Typer(
    name="ticket-metrics",
    help="Per-agent counts of closed tickets and inactivity auto-closes.",
    add_completion=False,
)


def output_error(message: str, exit_code: int) -> None:
    """Output error and exit."""
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(exit_code)


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD date.

    Raises:
        ValueError: If the value is not a valid date in that format
    """
    if not _DATE_PATTERN.fullmatch(value.strip()):
        raise ValueError(f"Invalid date {value!r}: expected YYYY-MM-DD")
    return datetime.strptime(value.strip(), DATE_FORMAT).date()


def configure_logging() -> None:
    """Send log records to stderr at the level named by TICKET_METRICS_LOG_LEVEL."""
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def connect() -> ZendeskClient:
    """Open a session with Zendesk, exiting on bad credentials or connection failure."""
    try:
        client = ZendeskClient()
    except ZendeskAuthError as e:
        output_error(str(e), EXIT_CREDENTIALS_ERROR)

    try:
        client.validate()
    except ZendeskAPIError as e:
        client.close()
        if e.status_code == 401:
            output_error(str(e), EXIT_CREDENTIALS_ERROR)
        output_error(f"Cannot connect to Zendesk at {client.base_url}: {e}", EXIT_CONNECTION_ERROR)
    return client


@app.command()
def report(
    start: Annotated[
        str,
        typer.Option("--start", "-s", help="Start date (oldest), YYYY-MM-DD. Inclusive."),
    ],
    end: Annotated[
        str,
        typer.Option("--end", "-e", help="End date (most recent), YYYY-MM-DD. Inclusive."),
    ],
) -> None:
    """Report closed and solved tickets per agent, created between two dates.

    Tickets without an assignee count toward the overall total but belong to
    no agent, so the overall percentage is not an average of the agent rows.
    A ticket with several auto-close notifications counts each of them.
    """
    configure_logging()

    try:
        start_date = parse_date(start)
        end_date = parse_date(end)
    except ValueError as e:
        output_error(str(e), EXIT_DATE_ERROR)

    typer.echo(f"Dates: {start_date:{DATE_FORMAT}}  and {end_date:{DATE_FORMAT}}")

    with connect() as client:
        try:
            result = operations.collect_agent_metrics(client, start_date, end_date)
        except (ZendeskClientError, ValueError) as e:
            output_error(str(e), EXIT_CONNECTION_ERROR)

    for line in render_report(result):
        typer.echo(line)


def main_cli() -> None:
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main_cli()
