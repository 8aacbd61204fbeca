"""Append-only store of validated events addressed by integer handles."""
import logging
import re
from datetime import tzinfo
from typing import Iterable, Iterator, List, Sequence, Set

from processor.models import Event

logger = logging.getLogger(__name__)


class EventStore:
    """
    Shared collection of immutable events.

    Buckets and pages hold handles (insertion indices) into the store
    rather than copies of the events themselves.
    """

    FILE_DATE_FORMAT = '%Y-%m-%d'
    _SLUG_PATTERN = re.compile(r'[^a-zA-Z0-9_-]+')

    def __init__(self, display_timezone: tzinfo, events: Iterable[Event] = ()):
        """
        Initialize the store.

        Args:
            display_timezone: Timezone used to derive event file names
            events: Initial events, added in order
        """
        self.display_timezone = display_timezone
        self._events: List[Event] = []
        self._file_names: List[str] = []
        self._used_names: Set[str] = set()
        for event in events:
            self.add(event)

    def add(self, event: Event) -> int:
        """
        Append an event and return its handle.

        Args:
            event: Validated Event

        Returns:
            Integer handle of the stored event
        """
        handle = len(self._events)
        self._events.append(event)
        self._file_names.append(self._unique_file_name(event))
        return handle

    def __len__(self) -> int:
        return len(self._events)

    def __getitem__(self, handle: int) -> Event:
        return self._events[handle]

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)

    def handles(self) -> range:
        return range(len(self._events))

    def sorted_handles(self) -> List[int]:
        """Handles ordered by start time; ties keep source order."""
        return sorted(self.handles(), key=lambda handle: self._events[handle].start)

    def resolve(self, handles: Sequence[int]) -> List[Event]:
        return [self._events[handle] for handle in handles]

    def file_name(self, handle: int) -> str:
        return self._file_names[handle]

    def _unique_file_name(self, event: Event) -> str:
        slug = self._SLUG_PATTERN.sub('_', event.summary)
        stem = f"{event.date_in(self.display_timezone).strftime(self.FILE_DATE_FORMAT)}-{slug}"

        file_name = f"{stem}.html"
        suffix = 1
        while file_name in self._used_names:
            suffix += 1
            file_name = f"{stem}-{suffix}.html"
        if suffix > 1:
            logger.debug(f"Event file name collision for '{stem}', using suffix {suffix}")
        self._used_names.add(file_name)
        return file_name
