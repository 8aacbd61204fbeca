"""Event processor for validating and normalizing event data."""
import hashlib
import logging
from datetime import date, datetime, time, timedelta, tzinfo
from typing import List, Optional, Union

from processor.errors import CalendarSiteError, MalformedEventError
from processor.models import Event, RawEvent

logger = logging.getLogger(__name__)


class EventProcessor:
    """Processor for validating and normalizing event data."""

    def __init__(self, default_timezone: tzinfo):
        """
        Initialize the processor.

        Args:
            default_timezone: Zone applied to floating and date-only times
        """
        self.default_timezone = default_timezone

    def process_events(self, raw_events: List[RawEvent]) -> List[Event]:
        """
        Process and validate raw event data.

        Malformed records are logged and skipped; they never abort the run.

        Args:
            raw_events: List of RawEvent objects from the ICS parser

        Returns:
            List of validated Event objects
        """
        processed_events = []

        for raw in raw_events:
            try:
                processed_events.append(self._process_single_event(raw))
            except CalendarSiteError as e:
                logger.warning(
                    f"Skipping event '{raw.summary}' from {raw.calendar_name or 'unknown calendar'}: {e}"
                )
                continue

        logger.info(
            f"Processed {len(processed_events)} valid events out of "
            f"{len(raw_events)} total events"
        )
        return processed_events

    def _process_single_event(self, raw: RawEvent) -> Event:
        """
        Process a single event.

        Args:
            raw: Unvalidated RawEvent

        Returns:
            Event object

        Raises:
            MalformedEventError: If a required field is missing or inconsistent
        """
        self._validate_required_fields(raw)

        start = self._normalize_datetime(raw.start)

        if raw.duration is not None:
            duration = raw.duration
        else:
            duration = self._normalize_datetime(raw.end) - start

        if duration < timedelta(0):
            raise MalformedEventError("end time is before start time")

        uid = raw.uid or self.generate_event_id(raw.summary.strip(), start)

        return Event(
            summary=raw.summary.strip(),
            start=start,
            duration=duration,
            description=raw.description,
            location=raw.location,
            url=raw.url,
            uid=uid,
            calendar_name=raw.calendar_name,
            calendar_title=raw.calendar_title,
            calendar_color=raw.calendar_color,
        )

    def _validate_required_fields(self, raw: RawEvent) -> None:
        """
        Validate that required fields are present and non-empty.

        Args:
            raw: RawEvent to validate

        Raises:
            MalformedEventError: Naming the first missing field
        """
        if not raw.summary or not raw.summary.strip():
            raise MalformedEventError("missing required field: summary")

        if raw.start is None:
            raise MalformedEventError("missing required field: start")

        if raw.end is None and raw.duration is None:
            raise MalformedEventError("missing required field: end or duration")

    def _normalize_datetime(self, value: Optional[Union[date, datetime]]) -> datetime:
        """
        Resolve a date or datetime to an aware datetime.

        Date-only values become midnight and floating times are placed in
        the default timezone.
        """
        if isinstance(value, datetime):
            if value.tzinfo is None or value.utcoffset() is None:
                return value.replace(tzinfo=self.default_timezone)
            return value
        if isinstance(value, date):
            return datetime.combine(value, time(0, 0), tzinfo=self.default_timezone)
        raise MalformedEventError(f"unsupported date value: {value!r}")

    def generate_event_id(self, summary: str, start: datetime) -> str:
        """
        Generate a stable identifier for an event without a UID.

        Args:
            summary: Event summary
            start: Normalized start time

        Returns:
            SHA256 hex digest of summary and start
        """
        composite = f"{summary}|{start.isoformat()}"
        return hashlib.sha256(composite.encode('utf-8')).hexdigest()
