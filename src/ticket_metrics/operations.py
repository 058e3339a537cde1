"""Binds the Zendesk client to the aggregator.

Turns raw API dicts into models lazily, so tickets and audits stream
through the aggregator page by page.
"""

from collections.abc import Iterator
from datetime import date

from ticket_metrics.aggregator import aggregate
from ticket_metrics.client import ZendeskClient
from ticket_metrics.models import AggregationResult, Audit, Ticket


def fetch_tickets(client: ZendeskClient) -> Iterator[Ticket]:
    """Stream every ticket in the account as a Ticket model."""
    for raw in client.iter_tickets():
        yield Ticket.model_validate(raw)


def fetch_audits(client: ZendeskClient, ticket_id: int) -> Iterator[Audit]:
    """Stream the audits of one ticket."""
    for raw in client.iter_ticket_audits(ticket_id):
        yield Audit.model_validate(raw)


def resolve_user_name(client: ZendeskClient, user_id: int) -> str:
    """Display name of a user, falling back to the id when the name is blank."""
    user = client.get_user(user_id)
    return user.get("name") or str(user_id)


def collect_agent_metrics(
    client: ZendeskClient,
    start: date,
    end: date,
) -> AggregationResult:
    """Aggregate per-agent metrics for tickets created between start and end.

    Search is not used: it stops at 1000 results, so every ticket is
    listed and filtered locally.
    """
    return aggregate(
        fetch_tickets(client),
        start,
        end,
        audit_fetcher=lambda ticket_id: fetch_audits(client, ticket_id),
        user_resolver=lambda user_id: resolve_user_name(client, user_id),
    )
