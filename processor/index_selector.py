"""Chooses the page of each view that is duplicated as its index."""
import logging
from datetime import date
from enum import Enum
from typing import Optional, Sequence

from processor.models import Page, WindowTriple

logger = logging.getLogger(__name__)


class IndexSelector:
    """
    Index rule: the first page whose date range reaches the cursor date,
    or the last page when every page lies entirely in the past.
    """

    def __init__(self, today: date):
        self.today = today

    def is_candidate(self, page: Page) -> bool:
        return page.last_date >= self.today

    def select(self, pages: Sequence[Page]) -> Optional[int]:
        """
        Find the position of the index page.

        Args:
            pages: Chronologically ordered pages of one view

        Returns:
            Position in pages, or None if there are no pages
        """
        for position, page in enumerate(pages):
            if self.is_candidate(page):
                return position
        return len(pages) - 1 if pages else None


class IndexState(Enum):
    SCANNING = 'scanning'
    INDEX_WRITTEN = 'index_written'


class IndexSelection:
    """Tracks whether a view's index page has been chosen while iterating."""

    def __init__(self, selector: IndexSelector):
        self.selector = selector
        self.state = IndexState.SCANNING

    def observe(self, triple: WindowTriple) -> bool:
        """
        Decide whether the current page of the triple is the index page.

        Returns True at most once per view.
        """
        if self.state is IndexState.INDEX_WRITTEN:
            return False
        if self.selector.is_candidate(triple.current) or triple.next is None:
            self.state = IndexState.INDEX_WRITTEN
            logger.debug(f"Selected {triple.current.file_name} as index page")
            return True
        return False
