"""Ready-made filter specs for the event, booking and musician listings.

Event specs expect items shaped like :class:`~app.services.event_status.EventView`
(``event_status`` plus the event's ``bookings``); the musician filter spec expects
musician profiles.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence

from ..models.booking_status import BookingStatus, CancellationReason, EventStatus
from ..utils.fields import read_field, read_path
from .filter_engine import (
    ALL,
    DateRangeFilter,
    FacetFilter,
    FacetMatch,
    FilterOption,
    FilterSpec,
    SearchFilter,
    StatusFilter,
    as_options,
)
from .status_display import BOOKING_STATUS_DISPLAY, CANCELLATION_REASON_LABELS, EVENT_STATUS_DISPLAY


def _booking_musician_names(item: Any) -> list[str]:
    names = []
    for booking in read_field(item, "bookings") or ():
        name = read_path(booking, "musician.stage_name")
        if name:
            names.append(name)
    return names


def _cancelled_reasons(item: Any) -> list[Any]:
    reasons = []
    for booking in read_field(item, "bookings") or ():
        if BookingStatus.coerce(read_field(booking, "status")) == BookingStatus.CANCELLED:
            reasons.append(read_field(booking, "cancellation_reason"))
    return reasons


def _status_options(statuses: Iterable[EventStatus], all_label: str = "All Statuses") -> tuple[FilterOption, ...]:
    return (FilterOption(ALL, all_label),) + tuple(
        FilterOption(s.value, EVENT_STATUS_DISPLAY[s].label) for s in statuses
    )


def event_history_spec(
    musicians: Sequence[str] = (),
    venues: Sequence[str] = (),
    cancellation_reasons: Optional[Mapping[CancellationReason, str]] = None,
) -> FilterSpec:
    """Past events: date range, completed/cancelled, musician, venue and reason."""
    reasons = cancellation_reasons if cancellation_reasons is not None else CANCELLATION_REASON_LABELS
    return FilterSpec(
        search=SearchFilter(fields=("title", "venue.name", "description")),
        date_range=DateRangeFilter(field="date"),
        status=StatusFilter(
            field="event_status",
            options=_status_options((EventStatus.COMPLETED, EventStatus.CANCELLED)),
        ),
        facets=(
            FacetFilter(
                key="musician",
                field=_booking_musician_names,
                label="Musician",
                options=as_options(musicians),
                searchable=True,
                match=FacetMatch.ANY,
            ),
            FacetFilter(
                key="venue",
                field="venue.name",
                label="Venue",
                options=as_options(venues),
                searchable=True,
            ),
            FacetFilter(
                key="cancellationReason",
                field=_cancelled_reasons,
                label="Cancellation Reason",
                options=as_options((getattr(k, "value", k), label) for k, label in reasons.items()),
                match=FacetMatch.ANY,
            ),
        ),
    )


def venue_events_spec(musicians: Sequence[str] = ()) -> FilterSpec:
    """A venue's active events, filterable by any musician attached to them."""
    active = [s for s in EventStatus if s not in (EventStatus.COMPLETED, EventStatus.CANCELLED)]
    return FilterSpec(
        search=SearchFilter(fields=("title", "description")),
        date_range=DateRangeFilter(field="date"),
        status=StatusFilter(field="event_status", options=_status_options(active)),
        facets=(
            FacetFilter(
                key="musician",
                field=_booking_musician_names,
                label="Musician",
                options=as_options(musicians),
                searchable=True,
                match=FacetMatch.ANY,
            ),
        ),
    )


def search_and_status_spec(
    status_field: Any,
    status_options: Iterable[Any],
    search_fields: Sequence[Any],
    placeholder: str = "Search...",
) -> FilterSpec:
    return FilterSpec(
        search=SearchFilter(fields=tuple(search_fields), placeholder=placeholder),
        status=StatusFilter(field=status_field, options=as_options(status_options)),
    )


def my_bookings_spec() -> FilterSpec:
    options = [(ALL, "All Statuses")] + [(s.value, BOOKING_STATUS_DISPLAY[s].label) for s in BookingStatus]
    return search_and_status_spec(
        status_field="status",
        status_options=options,
        search_fields=("event.title", "musician.stage_name", "venue.name", "musician_pitch"),
    )


def musician_search_spec(genres: Sequence[str] = ()) -> FilterSpec:
    return FilterSpec(
        search=SearchFilter(
            fields=("stage_name", "city", "bio"),
            placeholder="Search by name, location, or bio...",
        ),
        facets=(
            FacetFilter(
                key="genre",
                field="genres",
                label="Genre",
                options=as_options(genres),
                match=FacetMatch.ANY,
            ),
        ),
    )
