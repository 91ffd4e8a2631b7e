"""Declarative filtering for dashboard listings.

A :class:`FilterSpec` names which predicate families a listing offers: a
free-text search over several fields, an inclusive date range on one
field, a status equality check, and any number of named facets. A
:class:`FilterState` holds what the user picked. Evaluation ANDs every
enabled predicate; a predicate whose state value is empty or ``all`` passes
every item, so a cleared state returns the collection unchanged.

Fields are addressed either by dotted path (``"venue.name"``) read from
mappings or attributes, or by a callable taking the item.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Generic, Iterable, Mapping, Optional, Sequence, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from ..utils.fields import read_path

logger = logging.getLogger(__name__)

ALL = "all"

RESERVED_KEYS = ("dateFrom", "dateTo", "status", "search")

T = TypeVar("T")
FieldRef = Union[str, Callable[[Any], Any]]


class UnknownFacetError(ValueError):
    """A filter state names facets the filter spec does not declare."""

    def __init__(self, keys: Iterable[str]):
        self.keys = sorted(keys)
        super().__init__(f"Unknown filter facet(s): {', '.join(self.keys)}")


class FacetMatch(str, enum.Enum):
    EXACT = "exact"
    # The field yields several values; any one equal to the selection matches
    ANY = "any"


@dataclass(frozen=True)
class FilterOption:
    value: str
    label: str


def as_options(values: Iterable[Any]) -> tuple[FilterOption, ...]:
    opts = []
    for v in values or ():
        if isinstance(v, FilterOption):
            opts.append(v)
        elif isinstance(v, tuple) and len(v) == 2:
            opts.append(FilterOption(str(v[0]), str(v[1])))
        else:
            opts.append(FilterOption(str(v), str(v)))
    return tuple(opts)


def extract(item: Any, ref: FieldRef) -> Any:
    if callable(ref):
        return ref(item)
    return read_path(item, ref)


# ─── Predicate descriptors ────────────────────────────────────────────────────


@dataclass(frozen=True)
class SearchFilter:
    fields: tuple[FieldRef, ...]
    placeholder: str = "Search..."


@dataclass(frozen=True)
class DateRangeFilter:
    field: FieldRef
    from_label: str = "Date From"
    to_label: str = "Date To"


@dataclass(frozen=True)
class StatusFilter:
    field: FieldRef
    options: tuple[FilterOption, ...] = ()
    label: str = "Status"


@dataclass(frozen=True)
class FacetFilter:
    key: str
    field: FieldRef
    label: str = ""
    options: tuple[FilterOption, ...] = ()
    # Whether the UI offers a searchable chooser; no effect on matching
    searchable: bool = False
    match: FacetMatch = FacetMatch.EXACT

    def __post_init__(self) -> None:
        if self.key in RESERVED_KEYS:
            raise ValueError(f"Facet key {self.key!r} is reserved")


FilterPredicate = Union[SearchFilter, DateRangeFilter, StatusFilter, FacetFilter]


# ─── State ────────────────────────────────────────────────────────────────────


class FilterState(BaseModel):
    """User-entered filter values. Empty strings and ``all`` mean no constraint."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    date_from: str = Field(default="", alias="dateFrom")
    date_to: str = Field(default="", alias="dateTo")
    status: str = ALL
    search: str = ""
    facets: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_flat(cls, values: Optional[Mapping[str, Any]] = None) -> "FilterState":
        """Build a state from the flat ``{dateFrom, dateTo, status, search, <facet>...}`` shape."""
        values = dict(values or {})
        reserved = {}
        for key, snake in (("dateFrom", "date_from"), ("dateTo", "date_to")):
            raw = values.pop(key, None)
            if raw is None:
                raw = values.pop(snake, None)
            if raw is not None:
                reserved[snake] = str(raw)
        for key in ("status", "search"):
            raw = values.pop(key, None)
            if raw is not None:
                reserved[key] = str(raw)
        facets = {str(k): str(v) for k, v in values.items() if v is not None}
        return cls(**reserved, facets=facets)

    def to_flat(self) -> dict[str, str]:
        return {
            "dateFrom": self.date_from,
            "dateTo": self.date_to,
            "status": self.status,
            "search": self.search,
            **self.facets,
        }

    def facet(self, key: str) -> str:
        return self.facets.get(key, ALL)


def _is_unconstrained(value: Optional[str]) -> bool:
    return value is None or value == "" or value == ALL


# ─── Stand-alone predicates ──────────────────────────────────────────────────


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, enum.Enum):
        value = value.value
    return str(value)


def matches_search(values: Iterable[Any], term: Optional[str]) -> bool:
    """Case-insensitive substring match against any present value."""
    if not term:
        return True
    needle = term.lower()
    for value in values or ():
        text = _text(value)
        if text is not None and needle in text.lower():
            return True
    return False


def parse_date(value: Any) -> Optional[date]:
    """Calendar date of ``value`` or ``None`` when absent or unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    raw = value.strip()
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def matches_date_range(value: Any, date_from: Any = None, date_to: Any = None) -> bool:
    """Inclusive bounds; items without a usable date always pass."""
    item_date = parse_date(value)
    if item_date is None:
        return True
    lower = parse_date(date_from)
    if lower is not None and item_date < lower:
        return False
    upper = parse_date(date_to)
    if upper is not None and item_date > upper:
        return False
    return True


def matches_status(value: Any, selected: Optional[str]) -> bool:
    if _is_unconstrained(selected):
        return True
    return _text(value) == selected


def matches_facet(value: Any, selected: Optional[str], match: FacetMatch = FacetMatch.EXACT) -> bool:
    if _is_unconstrained(selected):
        return True
    if match == FacetMatch.ANY:
        if value is None or isinstance(value, (str, bytes)):
            values = [value]
        else:
            try:
                values = list(value)
            except TypeError:
                values = [value]
        return any(_text(v) == selected for v in values)
    return _text(value) == selected


# ─── Spec / evaluation ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class FilterResult(Generic[T]):
    items: list[T]
    total_count: int
    filtered_count: int


@dataclass(frozen=True)
class FilterSpec:
    search: Optional[SearchFilter] = None
    date_range: Optional[DateRangeFilter] = None
    status: Optional[StatusFilter] = None
    facets: tuple[FacetFilter, ...] = ()

    def __post_init__(self) -> None:
        keys = [f.key for f in self.facets]
        dupes = {k for k in keys if keys.count(k) > 1}
        if dupes:
            raise ValueError(f"Duplicate facet keys: {sorted(dupes)}")

    @property
    def predicates(self) -> tuple[FilterPredicate, ...]:
        enabled = [p for p in (self.search, self.date_range, self.status) if p is not None]
        return tuple(enabled) + self.facets

    def facet(self, key: str) -> Optional[FacetFilter]:
        for f in self.facets:
            if f.key == key:
                return f
        return None

    def initial_state(self) -> FilterState:
        return FilterState(facets={f.key: ALL for f in self.facets})

    def bind(self, state: Optional[FilterState]) -> FilterState:
        """Return ``state`` after checking its facet keys against the spec."""
        if state is None:
            return self.initial_state()
        unknown = set(state.facets) - {f.key for f in self.facets}
        if unknown:
            raise UnknownFacetError(unknown)
        return state

    def matches(self, item: Any, state: FilterState) -> bool:
        for predicate in self.predicates:
            if not _evaluate(predicate, item, state):
                return False
        return True


def _evaluate(predicate: FilterPredicate, item: Any, state: FilterState) -> bool:
    if isinstance(predicate, SearchFilter):
        if not state.search:
            return True
        return matches_search((extract(item, f) for f in predicate.fields), state.search)
    if isinstance(predicate, DateRangeFilter):
        if not state.date_from and not state.date_to:
            return True
        return matches_date_range(extract(item, predicate.field), state.date_from, state.date_to)
    if isinstance(predicate, StatusFilter):
        if _is_unconstrained(state.status):
            return True
        return matches_status(extract(item, predicate.field), state.status)
    if isinstance(predicate, FacetFilter):
        selected = state.facet(predicate.key)
        if _is_unconstrained(selected):
            return True
        return matches_facet(extract(item, predicate.field), selected, predicate.match)
    raise TypeError(f"Unsupported filter predicate {predicate!r}")


def filter_items(items: Iterable[T], spec: FilterSpec, state: Optional[FilterState] = None) -> list[T]:
    """Items matching every enabled predicate, in their original order."""
    bound = spec.bind(state)
    return [item for item in items if spec.matches(item, bound)]


def apply_filters(items: Sequence[T], spec: FilterSpec, state: Optional[FilterState] = None) -> FilterResult[T]:
    items = list(items)
    matched = filter_items(items, spec, state)
    if len(matched) != len(items):
        logger.debug("Filters kept %d of %d items", len(matched), len(items))
    return FilterResult(items=matched, total_count=len(items), filtered_count=len(matched))


def has_active_filters(spec: FilterSpec, state: Optional[FilterState]) -> bool:
    if state is None:
        return False
    if spec.search is not None and state.search:
        return True
    if spec.date_range is not None and (state.date_from or state.date_to):
        return True
    if spec.status is not None and not _is_unconstrained(state.status):
        return True
    return any(not _is_unconstrained(state.facet(f.key)) for f in spec.facets)
