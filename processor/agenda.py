"""Signed-offset agenda pagination around a cursor date."""
import logging
from datetime import date, tzinfo
from typing import List

from processor.errors import ConfigurationError
from processor.event_store import EventStore
from processor.models import CalendarView, Page

logger = logging.getLogger(__name__)


class AgendaPaginator:
    """
    Pages events into fixed-size chunks numbered relative to "today".

    Past events are chunked backward from the cursor and numbered -1, -2, ...
    so the page next to the cursor is always full; future events (including
    those on the cursor date) are chunked forward and numbered 0, 1, ...
    """

    def __init__(self, events_per_page: int, display_timezone: tzinfo):
        """
        Initialize the paginator.

        Args:
            events_per_page: Positive page size
            display_timezone: Timezone in which event dates are compared

        Raises:
            ConfigurationError: If events_per_page is not positive
        """
        if events_per_page < 1:
            raise ConfigurationError(
                f"Agenda events per page must be positive; got {events_per_page}"
            )
        self.events_per_page = events_per_page
        self.display_timezone = display_timezone

    def paginate(self, store: EventStore, today: date) -> List[Page]:
        """
        Build the full agenda page sequence.

        Args:
            store: EventStore with the events to page
            today: Cursor date

        Returns:
            Pages ordered from the most negative page number upward
        """
        past: List[int] = []
        future: List[int] = []
        for handle in store.sorted_handles():
            if store[handle].date_in(self.display_timezone) < today:
                past.append(handle)
            else:
                future.append(handle)

        size = self.events_per_page
        pages: List[Page] = []

        for number, end in enumerate(range(len(past), 0, -size), start=1):
            chunk = past[max(0, end - size):end]
            pages.append(self._page(store, -number, chunk))
        pages.reverse()

        for number, start in enumerate(range(0, len(future), size)):
            pages.append(self._page(store, number, future[start:start + size]))

        logger.info(
            f"Agenda has {len(pages)} pages for {len(past)} past and "
            f"{len(future)} future events"
        )
        return pages

    def _page(self, store: EventStore, number: int, handles: List[int]) -> Page:
        return Page(
            view=CalendarView.AGENDA,
            key=number,
            events=tuple(handles),
            file_name=f"{number}.html",
            first_date=store[handles[0]].date_in(self.display_timezone),
            last_date=store[handles[-1]].date_in(self.display_timezone),
        )
