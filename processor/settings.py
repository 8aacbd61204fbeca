"""Site configuration read from environment variables."""
import json
import logging
import os
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Set, Tuple
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as date_parser

from processor.errors import ConfigurationError
from processor.models import CacheMode, CalendarSource, CalendarView

logger = logging.getLogger(__name__)

TODAY_KEYWORDS = ('today', 'now')
TRUE_VALUES = ('1', 'true', 'yes', 'on')


@dataclass
class SiteConfig:
    """All settings for one site generation run."""
    calendar_sources: List[CalendarSource] = field(default_factory=list)
    display_timezone: str = 'America/Phoenix'
    calendar_today_date: str = 'today'
    agenda_events_per_page: int = 10
    default_calendar_view: CalendarView = CalendarView.MONTH
    month_view_format: str = '%B %Y'
    week_view_format: str = '%B %Y'
    day_view_format: str = '%A, %B %d, %Y'
    agenda_view_format_start: str = '%B %d, %Y'
    agenda_view_format_end: str = '%B %d, %Y'
    event_start_format: str = '%I:%M%p'
    event_end_format: str = '%I:%M%p'
    output_dir: Path = Path('output')
    base_url_path: str = '/'
    stylesheet_path: str = '/styles/style.css'
    template_path: Optional[Path] = None
    render_month: bool = True
    render_week: bool = True
    render_day: bool = True
    render_agenda: bool = True
    render_event: bool = True
    render_feed: bool = True
    no_delete: bool = False
    cache_mode: CacheMode = CacheMode.NORMAL
    cache_dir: Path = Path('calendar_cache')
    cache_timeout_seconds: int = 86400
    timeout_seconds: int = 30
    embed_in_page: Optional[Path] = None
    embed_element_selector: str = 'main'
    log_level: str = 'INFO'

    def __post_init__(self):
        self.validate()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'SiteConfig':
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            Validated SiteConfig

        Raises:
            ConfigurationError: If any value is invalid
        """
        env = os.environ if environ is None else environ
        defaults = cls.__dataclass_fields__

        def text(name: str, attr: str) -> str:
            return env.get(name, defaults[attr].default)

        def flag(name: str, attr: str) -> bool:
            value = env.get(name)
            if value is None:
                return defaults[attr].default
            return value.strip().lower() in TRUE_VALUES

        def number(name: str, attr: str) -> int:
            value = env.get(name)
            if value is None:
                return defaults[attr].default
            try:
                return int(value)
            except ValueError:
                raise ConfigurationError(f"{name} must be an integer; got {value!r}")

        def path(name: str) -> Optional[Path]:
            value = env.get(name)
            return Path(value) if value else None

        try:
            cache_mode = CacheMode(env.get('CACHE_MODE', CacheMode.NORMAL.value).strip().lower())
        except ValueError:
            raise ConfigurationError(f"Unknown cache mode: {env.get('CACHE_MODE')!r}")

        return cls(
            calendar_sources=parse_sources(env.get('CALENDAR_SOURCES', '')),
            display_timezone=text('DISPLAY_TIMEZONE', 'display_timezone'),
            calendar_today_date=text('CALENDAR_TODAY_DATE', 'calendar_today_date'),
            agenda_events_per_page=number('AGENDA_EVENTS_PER_PAGE', 'agenda_events_per_page'),
            default_calendar_view=CalendarView.parse(
                env.get('DEFAULT_CALENDAR_VIEW', CalendarView.MONTH.value)
            ),
            month_view_format=text('MONTH_VIEW_FORMAT', 'month_view_format'),
            week_view_format=text('WEEK_VIEW_FORMAT', 'week_view_format'),
            day_view_format=text('DAY_VIEW_FORMAT', 'day_view_format'),
            agenda_view_format_start=text('AGENDA_VIEW_FORMAT_START', 'agenda_view_format_start'),
            agenda_view_format_end=text('AGENDA_VIEW_FORMAT_END', 'agenda_view_format_end'),
            event_start_format=text('EVENT_START_FORMAT', 'event_start_format'),
            event_end_format=text('EVENT_END_FORMAT', 'event_end_format'),
            output_dir=Path(env.get('OUTPUT_DIR', 'output')),
            base_url_path=text('BASE_URL_PATH', 'base_url_path'),
            stylesheet_path=text('STYLESHEET_PATH', 'stylesheet_path'),
            template_path=path('TEMPLATE_PATH'),
            render_month=flag('RENDER_MONTH', 'render_month'),
            render_week=flag('RENDER_WEEK', 'render_week'),
            render_day=flag('RENDER_DAY', 'render_day'),
            render_agenda=flag('RENDER_AGENDA', 'render_agenda'),
            render_event=flag('RENDER_EVENT', 'render_event'),
            render_feed=flag('RENDER_FEED', 'render_feed'),
            no_delete=flag('NO_DELETE', 'no_delete'),
            cache_mode=cache_mode,
            cache_dir=Path(env.get('CACHE_DIR', 'calendar_cache')),
            cache_timeout_seconds=number('CACHE_TIMEOUT_SECONDS', 'cache_timeout_seconds'),
            timeout_seconds=number('TIMEOUT_SECONDS', 'timeout_seconds'),
            embed_in_page=path('EMBED_IN_PAGE'),
            embed_element_selector=text('EMBED_ELEMENT_SELECTOR', 'embed_element_selector'),
            log_level=text('LOG_LEVEL', 'log_level'),
        )

    def validate(self) -> None:
        """Raise ConfigurationError for values that cannot be used."""
        self.timezone()
        self.today_date()
        if self.agenda_events_per_page < 1:
            raise ConfigurationError(
                f"AGENDA_EVENTS_PER_PAGE must be positive; got {self.agenda_events_per_page}"
            )
        if self.default_calendar_view is CalendarView.EVENT:
            raise ConfigurationError("The event view cannot be the default calendar view")

        names = [source.name for source in self.calendar_sources]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ConfigurationError(
                f"Calendar source names must be unique; duplicated: {', '.join(duplicates)}"
            )

    def timezone(self) -> tzinfo:
        try:
            return ZoneInfo(self.display_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigurationError(f"Unknown display timezone: {self.display_timezone!r}")

    def today_date(self) -> date:
        """
        Resolve calendar_today_date to a concrete date.

        "today" and "now" mean the current date in the display timezone;
        anything else is parsed as a date string.
        """
        value = self.calendar_today_date.strip()
        if value.lower() in TODAY_KEYWORDS:
            return datetime.now(self.timezone()).date()
        try:
            return date_parser.parse(value).date()
        except (ValueError, OverflowError):
            raise ConfigurationError(f"Could not parse calendar today date: {value!r}")

    def enabled_views(self) -> List[CalendarView]:
        flags = {
            CalendarView.MONTH: self.render_month,
            CalendarView.WEEK: self.render_week,
            CalendarView.DAY: self.render_day,
            CalendarView.AGENDA: self.render_agenda,
            CalendarView.EVENT: self.render_event,
        }
        return [view for view, enabled in flags.items() if enabled]


def parse_sources(value: str) -> List[CalendarSource]:
    """
    Parse the CALENDAR_SOURCES setting.

    Accepts a comma-separated list of paths/URLs or a JSON list whose items
    are either strings or objects with "source", "name", "title", "color"
    and "cookies" keys.

    Args:
        value: Raw setting value

    Returns:
        List of CalendarSource objects
    """
    value = (value or '').strip()
    if not value:
        return []

    if value.startswith('['):
        try:
            items = json.loads(value)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"CALENDAR_SOURCES is not valid JSON: {e}")
    else:
        items = [item.strip() for item in value.split(',') if item.strip()]

    return build_sources(items)


def build_sources(items: Sequence[Any]) -> List[CalendarSource]:
    """
    Create CalendarSource objects from strings or source objects.

    Names derived from a path or URL get a -2, -3, ... suffix when they
    collide with another source's name, so each source has its own cache
    file. Explicit names are kept as given.

    Raises:
        ConfigurationError: If an entry is neither a string nor a source object
    """
    entries = []
    for item in items:
        if isinstance(item, str):
            entries.append({'source': item})
        elif isinstance(item, dict) and item.get('source'):
            entries.append(item)
        else:
            raise ConfigurationError(f"Invalid calendar source entry: {item!r}")

    used_names = {entry['name'] for entry in entries if entry.get('name')}
    sources = []
    for entry in entries:
        name = entry.get('name')
        if not name:
            name = unique_name(derive_name(entry['source']), used_names)
            used_names.add(name)
        sources.append(make_source(
            entry['source'],
            name=name,
            title=entry.get('title'),
            color=entry.get('color'),
            cookies=parse_cookies(entry.get('cookies')),
        ))
    return sources


def derive_name(source: str) -> str:
    parsed = urlparse(source)
    return Path(parsed.path).stem or parsed.netloc or 'calendar'


def unique_name(name: str, used_names: Set[str]) -> str:
    candidate = name
    suffix = 1
    while candidate in used_names:
        suffix += 1
        candidate = f"{name}-{suffix}"
    if suffix > 1:
        logger.debug(f"Calendar name collision for '{name}', using '{candidate}'")
    return candidate


def parse_cookies(value: Any) -> Tuple[str, ...]:
    """
    Normalize a cookies setting to a tuple of "name=value" strings.

    A single string is one cookie; a list must contain only strings.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(cookie, str) for cookie in value):
        return tuple(value)
    raise ConfigurationError(f"Calendar source cookies must be a string or list of strings; got {value!r}")


def make_source(source: str, name: Optional[str] = None, title: Optional[str] = None,
                color: Optional[str] = None, cookies: Tuple[str, ...] = ()) -> CalendarSource:
    """Create a CalendarSource, deriving its name from the path or URL."""
    return CalendarSource(
        source=source,
        name=name or derive_name(source),
        title=title,
        color=color,
        cookies=tuple(cookies),
    )
