"""Per-agent ticket aggregation.

Walks every ticket once, keeps the ones created inside an inclusive date
range whose status is closed or solved, and attributes them to their
assignee. Each kept ticket's audits are then scanned for the inactivity
notification Zendesk sends when it closes a request on its own.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import date

from ticket_metrics.models import (
    AggregationResult,
    Audit,
    NotificationEvent,
    Summary,
    Ticket,
    TicketStatus,
)

logger = logging.getLogger(__name__)

# Phrase in the body of the inactivity auto-close email
AUTO_CLOSE_MARKER = "This request will now be closed"

ELIGIBLE_STATUSES = frozenset({TicketStatus.CLOSED, TicketStatus.SOLVED})

# Log progress every N tickets scanned
PROGRESS_INTERVAL = 1000

AuditFetcher = Callable[[int], Iterable[Audit]]
UserResolver = Callable[[int], str]


def is_eligible(ticket: Ticket, start: date, end: date) -> bool:
    """Check the created-date range (inclusive at both ends) and the status."""
    created = ticket.created_on
    if created < start or created > end:
        return False
    return ticket.status in ELIGIBLE_STATUSES


def count_auto_close_notifications(audits: Iterable[Audit]) -> int:
    """Count notification events carrying the auto-close marker.

    Every match counts, even several on the same ticket.
    """
    matches = 0
    for audit in audits:
        for event in audit.events:
            if isinstance(event, NotificationEvent) and AUTO_CLOSE_MARKER in event.body:
                matches += 1
    return matches


def aggregate(
    tickets: Iterable[Ticket],
    start: date,
    end: date,
    audit_fetcher: AuditFetcher,
    user_resolver: UserResolver,
) -> AggregationResult:
    """Build per-agent summaries for eligible tickets.

    Args:
        tickets: Tickets in any order; consumed once, lazily
        start: First creation date to include
        end: Last creation date to include
        audit_fetcher: Returns the audits of a ticket id; called once per
            eligible assigned ticket
        user_resolver: Returns an agent's display name; called once per agent

    Returns:
        AggregationResult with one Summary per agent owning an eligible ticket
    """
    result = AggregationResult()
    summaries = result.summaries
    scanned = 0

    for ticket in tickets:
        scanned += 1
        if scanned % PROGRESS_INTERVAL == 0:
            logger.info("Scanned %d tickets, %d eligible so far", scanned, result.total_eligible)

        if not is_eligible(ticket, start, end):
            continue

        result.total_eligible += 1

        agent_id = ticket.assignee_id
        if agent_id is None:
            logger.info("No assignee for ticket %s", ticket.id)
            result.unassigned_ticket_ids.append(ticket.id)
            continue

        summary = summaries.get(agent_id)
        if summary is None:
            summary = Summary(display_name=user_resolver(agent_id))
            summaries[agent_id] = summary
        else:
            summary.ticket_count += 1

        logger.debug("Ticket %s counted for agent %s", ticket.id, agent_id)

        matches = count_auto_close_notifications(audit_fetcher(ticket.id))
        if not matches:
            continue

        summary.auto_close_count += matches
        result.total_autoclosed += matches

    logger.info(
        "Scanned %d tickets: %d eligible, %d auto-closed, %d agents",
        scanned,
        result.total_eligible,
        result.total_autoclosed,
        len(summaries),
    )
    return result
