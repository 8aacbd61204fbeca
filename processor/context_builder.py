"""Shapes events and pages into template contexts."""
import calendar
import logging
import posixpath
from datetime import date, timedelta
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from processor.errors import DateArithmeticError
from processor.event_store import EventStore
from processor.models import CalendarView, Page, WindowTriple
from processor.settings import SiteConfig
from processor.temporal_indexer import BucketIndex

logger = logging.getLogger(__name__)

YMD_FORMAT = '%Y-%m-%d'
AGENDA_HEADER_FORMAT = '%a, %d %B %Y'
DAYS_PER_WEEK = 7

PAGE_TITLES = {
    CalendarView.MONTH: 'Month View',
    CalendarView.WEEK: 'Week View',
    CalendarView.DAY: 'Day View',
    CalendarView.AGENDA: 'Agenda',
    CalendarView.EVENT: 'Event Page',
}


def humanize_duration(duration: timedelta) -> str:
    """Render a duration like "1 day, 2 hours and 30 minutes"."""
    total = int(duration.total_seconds())
    days, remainder = divmod(total, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, seconds = divmod(remainder, 60)

    parts = []
    for amount, unit in ((days, 'day'), (hours, 'hour'), (minutes, 'minute'), (seconds, 'second')):
        if amount:
            parts.append(f"{amount} {unit}{'' if amount == 1 else 's'}")

    if not parts:
        return '0 minutes'
    if len(parts) == 1:
        return parts[0]
    return f"{', '.join(parts[:-1])} and {parts[-1]}"


def month_view_dates(year: int, month: int) -> List[date]:
    """
    Every date shown in a month grid of Sunday-first weeks.

    The first and last rows are padded with days of the adjacent months.

    Raises:
        DateArithmeticError: If the month or its boundary weeks are out of range
    """
    try:
        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        start = first - timedelta(days=days_from_sunday(first))
        end = last + timedelta(days=DAYS_PER_WEEK - 1 - days_from_sunday(last))
    except (ValueError, OverflowError) as e:
        raise DateArithmeticError(f"Could not compute view dates for {year}-{month}: {e}")
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def iso_week_dates(year: int, week: int) -> List[date]:
    """
    Monday through Sunday of an ISO week.

    Raises:
        DateArithmeticError: If the ISO year/week does not exist
    """
    try:
        monday = date.fromisocalendar(year, week, 1)
        return [monday + timedelta(days=offset) for offset in range(DAYS_PER_WEEK)]
    except (ValueError, OverflowError) as e:
        raise DateArithmeticError(f"Could not compute dates for ISO week {year}-{week}: {e}")


def days_from_sunday(day: date) -> int:
    return (day.weekday() + 1) % DAYS_PER_WEEK


def month_file_name(year: int, month: int) -> str:
    return f"{year}-{month}.html"


def week_file_name(year: int, week: int) -> str:
    return f"{year}-{week}.html"


def day_file_name(day: date) -> str:
    return f"{day.year}-{day.month:02}-{day.day:02}.html"


class ViewContextBuilder:
    """
    Builds the mapping of named values the renderer consumes for each page.

    No rendering happens here; every value is a plain string, number,
    boolean, list, or dict.
    """

    def __init__(self, config: SiteConfig, store: EventStore, index: BucketIndex):
        self.config = config
        self.store = store
        self.index = index
        self.tz = config.timezone()
        self.enabled_views = config.enabled_views()

    def link(self, view: CalendarView, file_name: str) -> str:
        return posixpath.join(self.config.base_url_path, view.path, file_name)

    def view_link(self, view: CalendarView, file_name: str) -> Optional[str]:
        """Link to a page of a view, or None when that view is not rendered."""
        if view not in self.enabled_views:
            return None
        return self.link(view, file_name)

    def stylesheet_link(self) -> str:
        stylesheet = self.config.stylesheet_path
        parsed = urlparse(stylesheet)
        if parsed.scheme or parsed.netloc:
            return stylesheet
        return posixpath.join(self.config.base_url_path, stylesheet.lstrip('/'))

    def base_context(self, view: CalendarView, triple: WindowTriple) -> Dict[str, Any]:
        """Values shared by every page: stylesheet, view paths, and navigation."""
        previous_page: Optional[Page] = triple.previous
        next_page: Optional[Page] = triple.next
        base = self.config.base_url_path

        return {
            'stylesheet_path': self.stylesheet_link(),
            'timezone': self.config.display_timezone,
            'current_view': view.path,
            'enabled_views': [enabled.path for enabled in self.enabled_views],
            'page_title': PAGE_TITLES[view],
            'month_view_path': posixpath.join(base, CalendarView.MONTH.path),
            'week_view_path': posixpath.join(base, CalendarView.WEEK.path),
            'day_view_path': posixpath.join(base, CalendarView.DAY.path),
            'agenda_view_path': posixpath.join(base, CalendarView.AGENDA.path),
            'event_view_path': posixpath.join(base, CalendarView.EVENT.path),
            'file_name': triple.current.file_name,
            'previous_file_name': previous_page.file_name if previous_page else None,
            'next_file_name': next_page.file_name if next_page else None,
            'previous_link': self.link(view, previous_page.file_name) if previous_page else None,
            'next_link': self.link(view, next_page.file_name) if next_page else None,
        }

    def event_context(self, handle: int) -> Dict[str, Any]:
        """Display values for one event in the display timezone."""
        event = self.store[handle]
        start = event.local_start(self.tz)
        end = event.local_end(self.tz)

        return {
            'summary': event.summary,
            'description': event.description or '',
            'location': event.location or '',
            'url': event.url or '',
            'uid': event.uid or '',
            'calendar_name': event.calendar_name,
            'calendar_title': event.calendar_title or '',
            'calendar_color': event.calendar_color or '',
            'agenda_header': start.strftime(AGENDA_HEADER_FORMAT),
            'start': start.strftime(self.config.event_start_format),
            'start_timestamp': int(start.timestamp()),
            'end': end.strftime(self.config.event_end_format),
            'end_timestamp': int(end.timestamp()),
            'duration': humanize_duration(event.duration),
            'iso_week': start.isocalendar()[1],
            'file_path': self.view_link(CalendarView.EVENT, self.store.file_name(handle)),
            'day_view_path': self.view_link(CalendarView.DAY, day_file_name(start.date())),
        }

    def day_context(self, day: date, blank: bool = False) -> Dict[str, Any]:
        """
        Values for one day cell.

        Blank days are placeholders for dates outside the displayed month
        and never carry events.
        """
        handles = [] if blank else self.index.days.get(day, [])
        return {
            'date': day.strftime(YMD_FORMAT),
            'day': day.day,
            'link': self.view_link(CalendarView.DAY, day_file_name(day)),
            'wday': day.strftime('%a'),
            'month': day.month,
            'month_name': calendar.month_name[day.month],
            'is_weekend': day.weekday() >= 5,
            'is_blank': blank,
            'events': [self.event_context(handle) for handle in handles],
        }

    def month_weeks(self, year: int, month: int) -> List[List[Dict[str, Any]]]:
        dates = month_view_dates(year, month)
        days = [self.day_context(day, blank=day.month != month) for day in dates]
        return [days[i:i + DAYS_PER_WEEK] for i in range(0, len(days), DAYS_PER_WEEK)]

    def month_context(self, triple: WindowTriple) -> Dict[str, Any]:
        page: Page = triple.current
        year, month = page.key
        context = self.base_context(CalendarView.MONTH, triple)
        context.update({
            'year': year,
            'month': month,
            'month_name': calendar.month_name[month],
            'view_date': page.first_date.strftime(self.config.month_view_format),
            'weeks': self.month_weeks(year, month),
        })
        return context

    def week_context(self, triple: WindowTriple) -> Dict[str, Any]:
        page: Page = triple.current
        year, week = page.key
        dates = iso_week_dates(year, week)

        month_names: List[str] = []
        for day in dates:
            name = calendar.month_name[day.month]
            if name not in month_names:
                month_names.append(name)

        context = self.base_context(CalendarView.WEEK, triple)
        context.update({
            'year': year,
            'week': week,
            'month': dates[0].month,
            'month_name': ' - '.join(month_names),
            'view_date': dates[0].strftime(self.config.week_view_format),
            'week_dates': [self.day_context(day) for day in dates],
        })
        return context

    def day_page_context(self, triple: WindowTriple) -> Dict[str, Any]:
        page: Page = triple.current
        day: date = page.key
        context = self.base_context(CalendarView.DAY, triple)
        context.update({
            'year': day.year,
            'month': day.month,
            'month_name': calendar.month_name[day.month],
            'day': day.day,
            'view_date': day.strftime(self.config.day_view_format),
            'events': [self.event_context(handle) for handle in page.events],
        })
        return context

    def agenda_context(self, triple: WindowTriple) -> Dict[str, Any]:
        page: Page = triple.current
        events = [self.event_context(handle) for handle in page.events]

        event_groups: Dict[str, List[Dict[str, Any]]] = {}
        for event in events:
            event_groups.setdefault(event['agenda_header'], []).append(event)

        context = self.base_context(CalendarView.AGENDA, triple)
        context.update({
            'page': page.key,
            'view_date_start': page.first_date.strftime(self.config.agenda_view_format_start),
            'view_date_end': page.last_date.strftime(self.config.agenda_view_format_end),
            'events': events,
            'event_groups': event_groups,
        })
        return context

    def event_page_context(self, triple: WindowTriple) -> Dict[str, Any]:
        page: Page = triple.current
        handle = page.key
        day = page.first_date
        context = self.base_context(CalendarView.EVENT, triple)
        context.update({
            'year': day.year,
            'month': day.month,
            'month_name': calendar.month_name[day.month],
            'day': day.day,
            'view_date': day.strftime(self.config.day_view_format),
            'event': self.event_context(handle),
        })
        return context

    def page_context(self, view: CalendarView, triple: WindowTriple) -> Dict[str, Any]:
        builders = {
            CalendarView.MONTH: self.month_context,
            CalendarView.WEEK: self.week_context,
            CalendarView.DAY: self.day_page_context,
            CalendarView.AGENDA: self.agenda_context,
            CalendarView.EVENT: self.event_page_context,
        }
        return builders[view](triple)
