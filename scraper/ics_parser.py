"""ICS document parsing into raw events."""
import logging
from typing import List, Optional, Set

from icalendar import Calendar

from processor.errors import CalendarSourceError
from processor.models import CalendarSource, ParseResult, RawEvent

logger = logging.getLogger(__name__)

RECOGNISED_PROPERTIES = frozenset({
    'SUMMARY',
    'DESCRIPTION',
    'DTSTART',
    'DTEND',
    'DURATION',
    'LOCATION',
    'URL',
    'UID',
})


def _text(component, name: str) -> Optional[str]:
    value = component.get(name)
    if value is None:
        return None
    return str(value)


def _temporal(component, name: str):
    value = component.get(name)
    if value is None:
        return None
    return getattr(value, 'dt', None)


class IcsParser:
    """Parser for iCalendar documents."""

    def parse(self, text: str, source: CalendarSource) -> ParseResult:
        """
        Read every VEVENT of an ICS document.

        Args:
            text: ICS document
            source: CalendarSource the document came from

        Returns:
            ParseResult with raw events, sorted unrecognised property names,
            and the calendar title

        Raises:
            CalendarSourceError: If the document is not valid iCalendar
        """
        try:
            calendar = Calendar.from_ical(text)
        except ValueError as e:
            raise CalendarSourceError(f"Could not parse calendar {source.name}: {e}")

        calendar_title = source.title or _text(calendar, 'X-WR-CALNAME')

        events: List[RawEvent] = []
        unparsed: Set[str] = set()

        for component in calendar.walk('VEVENT'):
            for name in component.keys():
                if name.upper() not in RECOGNISED_PROPERTIES:
                    unparsed.add(name.upper())

            events.append(RawEvent(
                summary=_text(component, 'SUMMARY'),
                start=_temporal(component, 'DTSTART'),
                end=_temporal(component, 'DTEND'),
                duration=_temporal(component, 'DURATION'),
                description=_text(component, 'DESCRIPTION'),
                location=_text(component, 'LOCATION'),
                url=_text(component, 'URL'),
                uid=_text(component, 'UID'),
                calendar_name=source.name,
                calendar_title=calendar_title,
                calendar_color=source.color,
            ))

        logger.info(f"Parsed {len(events)} events from calendar {source.name}")
        if unparsed:
            logger.debug(f"Unparsed properties in {source.name}: {', '.join(sorted(unparsed))}")

        return ParseResult(
            events=events,
            unparsed_properties=sorted(unparsed),
            calendar_title=calendar_title,
        )
