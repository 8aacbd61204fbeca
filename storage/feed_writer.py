"""Export of all events as a single ICS feed."""
import logging
from datetime import timezone
from pathlib import Path

from icalendar import Calendar, Event as ICalEvent

from processor.errors import OutputPathError
from processor.event_store import EventStore

logger = logging.getLogger(__name__)

FEED_PATH = Path('feed') / 'feed.ics'
PRODID = '-//calendar-pages//EN'


class FeedWriter:
    """Writes the combined event feed."""

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)

    def build(self, store: EventStore) -> Calendar:
        calendar = Calendar()
        calendar.add('prodid', PRODID)
        calendar.add('version', '2.0')

        for handle in store.sorted_handles():
            event = store[handle]
            entry = ICalEvent()
            entry.add('summary', event.summary)
            entry.add('dtstart', event.start)
            entry.add('dtend', event.end)
            entry.add('dtstamp', event.start.astimezone(timezone.utc))
            if event.description:
                entry.add('description', event.description)
            if event.location:
                entry.add('location', event.location)
            if event.url:
                entry.add('url', event.url)
            entry.add('uid', event.uid)
            calendar.add_component(entry)

        return calendar

    def write(self, store: EventStore) -> Path:
        """
        Write feed/feed.ics under the output directory.

        Args:
            store: EventStore with all events

        Returns:
            Path of the written feed

        Raises:
            OutputPathError: If the feed cannot be written
        """
        path = self.output_dir / FEED_PATH
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(self.build(store).to_ical())
        except OSError as e:
            raise OutputPathError(f"Could not write feed {path}: {e}")

        logger.info(f"Wrote {len(store)} events to {path}")
        return path
