"""Data models for calendar events as delivered by the provider and as displayed."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..core.exceptions import FormatError


class EventMoment(BaseModel):
    """Start or end of an event: either a timestamp or a bare calendar date.

    Mirrors the provider's ``{"dateTime": ..., "date": ..., "timeZone": ...}``
    object. Exactly one of ``date_time``/``date`` is meaningful; when both are
    present the timestamp wins.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    date_time: Optional[str] = Field(default=None, alias="dateTime")
    date: Optional[str] = None
    time_zone: Optional[str] = Field(default=None, alias="timeZone")

    @model_validator(mode="after")
    def _has_value(self) -> "EventMoment":
        if not self.date_time and not self.date:
            raise ValueError("event moment has neither dateTime nor date")
        return self

    @property
    def has_time_of_day(self) -> bool:
        return bool(self.date_time)

    @property
    def raw(self) -> str:
        """The provider's string for this moment, timestamp preferred."""
        return self.date_time or self.date or ""


class CalendarEvent(BaseModel):
    """A single (already expanded) calendar event from the provider."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    summary: Optional[str] = None
    start: EventMoment
    end: EventMoment

    @property
    def is_all_day(self) -> bool:
        return is_all_day(self)

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "CalendarEvent":
        """Build an event from one entry of the provider's ``items`` list.

        Raises:
            FormatError: If the entry is not an object, or start/end are missing
                or carry neither date nor dateTime
        """
        if not isinstance(item, dict):
            raise FormatError(f"Malformed event entry of type {type(item).__name__}: {item!r}")
        try:
            return cls.model_validate(item)
        except ValidationError as e:
            raise FormatError(f"Malformed event {item.get('id', '<no id>')!r}: {e}") from e


class FormattedEvent(BaseModel):
    """Display-only projection of a CalendarEvent, built per request."""

    model_config = ConfigDict(frozen=True)

    date_label: str
    time_label: str
    title: str
    is_all_day: bool = False


def is_all_day(event: CalendarEvent) -> bool:
    """True when the event's start carries no time-of-day component.

    This is the single predicate used by both the HTML page and the JSON
    endpoint.
    """
    return not event.start.has_time_of_day
