"""Pydantic models for Zendesk tickets, audits and per-agent summaries."""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag

# Zendesk sends many fields we never read
_MODEL_CONFIG = ConfigDict(extra="ignore")


class TicketStatus(str, Enum):
    """Zendesk ticket statuses."""

    NEW = "new"
    OPEN = "open"
    PENDING = "pending"
    HOLD = "hold"
    SOLVED = "solved"
    CLOSED = "closed"


class Ticket(BaseModel):
    """The subset of a Zendesk ticket needed for agent metrics."""
    model_config = _MODEL_CONFIG

    id: int
    created_at: datetime
    # Unknown statuses stay plain strings instead of failing validation
    status: Annotated[TicketStatus | str, Field(union_mode="left_to_right")]
    assignee_id: int | None = None

    @property
    def created_on(self) -> date:
        """Calendar date of creation, in UTC."""
        if self.created_at.tzinfo is None:
            return self.created_at.date()
        return self.created_at.astimezone(timezone.utc).date()


class NotificationEvent(BaseModel):
    """Email notification sent by a trigger or automation."""
    model_config = _MODEL_CONFIG

    type: Literal["Notification"] = "Notification"
    body: str = ""


class GenericEvent(BaseModel):
    """Any audit event kind other than a notification."""
    model_config = _MODEL_CONFIG

    type: str


def _event_kind(value: Any) -> str:
    if isinstance(value, dict):
        kind = value.get("type")
    else:
        kind = getattr(value, "type", None)
    return "notification" if kind == "Notification" else "other"


Event = Annotated[
    Union[
        Annotated[NotificationEvent, Tag("notification")],
        Annotated[GenericEvent, Tag("other")],
    ],
    Discriminator(_event_kind),
]


class Audit(BaseModel):
    """A ticket audit: one change set holding an ordered list of events."""
    model_config = _MODEL_CONFIG

    id: int | None = None
    ticket_id: int | None = None
    events: list[Event] = Field(default_factory=list)


def percentage(part: int, whole: int) -> int:
    """Integer percentage rounded down; 0 when there is nothing to divide by."""
    if whole <= 0:
        return 0
    return part * 100 // whole


class Summary(BaseModel):
    """Running counts for one agent.

    Only the aggregator mutates a Summary, and only while it is building
    the result. A Summary exists only once its agent has an eligible ticket,
    so ticket_count is never below 1.
    """

    display_name: str
    ticket_count: int = Field(default=1, ge=1)
    auto_close_count: int = Field(default=0, ge=0)

    @property
    def auto_close_percentage(self) -> int:
        return percentage(self.auto_close_count, self.ticket_count)


class AggregationResult(BaseModel):
    """Outcome of one aggregation run."""

    # Keyed by assignee id, in order of first sighting
    summaries: dict[int, Summary] = Field(default_factory=dict)
    total_eligible: int = 0
    total_autoclosed: int = 0
    unassigned_ticket_ids: list[int] = Field(default_factory=list)

    @property
    def overall_percentage(self) -> int:
        """Auto-closed share of all eligible tickets, unassigned included."""
        return percentage(self.total_autoclosed, self.total_eligible)
