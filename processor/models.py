"""Data models for calendar events and generated pages."""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union

from processor.errors import ConfigurationError, MalformedEventError

WeekKey = Tuple[int, int]
MonthKey = Tuple[int, int]
PageKey = Union[date, WeekKey, MonthKey, int]


class CalendarView(Enum):
    """A family of generated pages, valued by its output sub-directory."""
    MONTH = 'month'
    WEEK = 'week'
    DAY = 'day'
    AGENDA = 'agenda'
    EVENT = 'event'

    @property
    def path(self) -> str:
        return self.value

    @property
    def template(self) -> str:
        return f"{self.value}.html"

    @classmethod
    def parse(cls, value: str) -> 'CalendarView':
        """
        Parse a view name case-insensitively.

        Args:
            value: View name such as "Month" or "agenda"

        Returns:
            Matching CalendarView

        Raises:
            ConfigurationError: If the name is not a known view
        """
        normalized = (value or '').strip().lower()
        for view in cls:
            if view.value == normalized:
                return view
        raise ConfigurationError(f"Unknown calendar view: {value!r}")


class CacheMode(Enum):
    """How remote calendar sources use the on-disk cache."""
    NORMAL = 'normal'
    NEVER_CACHE = 'never_cache'
    NEVER_DOWNLOAD = 'never_download'


@dataclass(frozen=True)
class CalendarSource:
    """A configured calendar file path or URL."""
    source: str
    name: str
    title: Optional[str] = None
    color: Optional[str] = None
    cookies: Tuple[str, ...] = ()


@dataclass
class RawEvent:
    """Unvalidated event as read from an ICS document."""
    summary: Optional[str]
    start: Optional[Union[date, datetime]]
    end: Optional[Union[date, datetime]] = None
    duration: Optional[timedelta] = None
    description: Optional[str] = None
    location: Optional[str] = None
    url: Optional[str] = None
    uid: Optional[str] = None
    calendar_name: str = ''
    calendar_title: Optional[str] = None
    calendar_color: Optional[str] = None


@dataclass(frozen=True)
class Event:
    """
    Validated, immutable calendar event.

    The same instance is shared by every day, week, month, and agenda
    bucket it belongs to.
    """
    summary: str
    start: datetime
    duration: timedelta
    description: Optional[str] = None
    location: Optional[str] = None
    url: Optional[str] = None
    uid: Optional[str] = None
    calendar_name: str = ''
    calendar_title: Optional[str] = None
    calendar_color: Optional[str] = None

    def __post_init__(self):
        if not self.summary or not self.summary.strip():
            raise MalformedEventError("Event has no summary")
        if not isinstance(self.start, datetime):
            raise MalformedEventError(
                f"Event '{self.summary}' has no start time"
            )
        if self.start.tzinfo is None or self.start.utcoffset() is None:
            raise MalformedEventError(
                f"Event '{self.summary}' start time has no resolved offset"
            )
        if not isinstance(self.duration, timedelta):
            raise MalformedEventError(
                f"Event '{self.summary}' has no end time"
            )
        if self.duration < timedelta(0):
            raise MalformedEventError(
                f"Event '{self.summary}' ends before it starts"
            )

    @property
    def end(self) -> datetime:
        return self.start + self.duration

    def local_start(self, tz: tzinfo) -> datetime:
        return self.start.astimezone(tz)

    def local_end(self, tz: tzinfo) -> datetime:
        return self.end.astimezone(tz)

    def date_in(self, tz: tzinfo) -> date:
        """Calendar date of the start instant in the given timezone."""
        return self.local_start(tz).date()

    def year_in(self, tz: tzinfo) -> int:
        return self.date_in(tz).year

    def iso_week_in(self, tz: tzinfo) -> WeekKey:
        """(ISO year, ISO week) of the start instant in the given timezone."""
        iso = self.date_in(tz).isocalendar()
        return iso[0], iso[1]


@dataclass(frozen=True)
class Page:
    """One navigable unit of output within a view."""
    view: CalendarView
    key: PageKey
    events: Tuple[int, ...]
    file_name: str
    first_date: date
    last_date: date


class WindowTriple(NamedTuple):
    """Previous, current, and next items used for navigation links."""
    previous: Optional[Any]
    current: Any
    next: Optional[Any]


@dataclass
class PageOutput:
    """A page ready for rendering, with its target and index duplicates."""
    view: CalendarView
    template: str
    file_path: str
    context: Dict[str, Any]
    index_paths: List[str] = field(default_factory=list)


@dataclass
class ParseResult:
    """Events and unrecognised property names read from one ICS document."""
    events: List[RawEvent]
    unparsed_properties: List[str]
    calendar_title: Optional[str] = None


@dataclass
class WriteResult:
    """Result of writing the generated pages."""
    pages_written: int
    index_pages_written: int
    files: List[str] = field(default_factory=list)


@dataclass
class RunResult:
    """Summary of one site generation run."""
    raw_events: int
    events: int
    pages_written: int
    index_pages_written: int
    unparsed_properties: List[str]
    feed_path: Optional[str] = None
