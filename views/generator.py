"""Generates the ordered, linked pages of every calendar view."""
import calendar
import logging
from datetime import date
from typing import List

from processor.agenda import AgendaPaginator
from processor.context_builder import (
    ViewContextBuilder,
    day_file_name,
    iso_week_dates,
    month_file_name,
    week_file_name,
)
from processor.errors import DateArithmeticError
from processor.event_store import EventStore
from processor.index_selector import IndexSelection, IndexSelector
from processor.models import CalendarView, Page, PageOutput
from processor.settings import SiteConfig
from processor.temporal_indexer import BucketIndex
from processor.window import WindowIterator

logger = logging.getLogger(__name__)

INDEX_FILE = 'index.html'


class ViewGenerator:
    """Turns bucketed events into PageOutput objects for each view."""

    def __init__(self, config: SiteConfig, store: EventStore, index: BucketIndex):
        """
        Initialize the generator.

        Args:
            config: Site configuration
            store: EventStore with all events
            index: Day, week, and month buckets built from the store
        """
        self.config = config
        self.store = store
        self.index = index
        self.tz = config.timezone()
        self.today = config.today_date()
        self.contexts = ViewContextBuilder(config, store, index)

    def pages(self, view: CalendarView) -> List[Page]:
        """
        Build the chronologically ordered pages of one view.

        Args:
            view: CalendarView to build

        Returns:
            List of Page objects
        """
        if view is CalendarView.MONTH:
            return self._month_pages()
        if view is CalendarView.WEEK:
            return self._week_pages()
        if view is CalendarView.DAY:
            return self._day_pages()
        if view is CalendarView.AGENDA:
            paginator = AgendaPaginator(self.config.agenda_events_per_page, self.tz)
            return paginator.paginate(self.store, self.today)
        return self._event_pages()

    def generate_view(self, view: CalendarView) -> List[PageOutput]:
        """
        Produce every page of a view with navigation and index targets.

        Exactly one page gets the view's index.html; for the default view
        that page is also written as the site root index.html.
        """
        pages = self.pages(view)
        selection = IndexSelection(IndexSelector(self.today))
        outputs = []

        for triple in WindowIterator(pages):
            index_paths = []
            if selection.observe(triple):
                index_paths.append(f"{view.path}/{INDEX_FILE}")
                if view is self.config.default_calendar_view:
                    index_paths.append(INDEX_FILE)

            outputs.append(PageOutput(
                view=view,
                template=view.template,
                file_path=f"{view.path}/{triple.current.file_name}",
                context=self.contexts.page_context(view, triple),
                index_paths=index_paths,
            ))

        logger.info(f"Generated {len(outputs)} {view.path} pages")
        return outputs

    def generate(self) -> List[PageOutput]:
        """Generate all enabled views in order."""
        outputs: List[PageOutput] = []
        for view in self.config.enabled_views():
            outputs.extend(self.generate_view(view))
        return outputs

    def _month_pages(self) -> List[Page]:
        pages = []
        for (year, month), handles in self.index.months.items():
            try:
                last_day = calendar.monthrange(year, month)[1]
            except ValueError as e:
                raise DateArithmeticError(f"Could not compute last day of {year}-{month}: {e}")
            pages.append(Page(
                view=CalendarView.MONTH,
                key=(year, month),
                events=tuple(handles),
                file_name=month_file_name(year, month),
                first_date=date(year, month, 1),
                last_date=date(year, month, last_day),
            ))
        return pages

    def _week_pages(self) -> List[Page]:
        pages = []
        for (year, week), handles in self.index.weeks.items():
            dates = iso_week_dates(year, week)
            pages.append(Page(
                view=CalendarView.WEEK,
                key=(year, week),
                events=tuple(handles),
                file_name=week_file_name(year, week),
                first_date=dates[0],
                last_date=dates[-1],
            ))
        return pages

    def _day_pages(self) -> List[Page]:
        return [
            Page(
                view=CalendarView.DAY,
                key=day,
                events=tuple(handles),
                file_name=day_file_name(day),
                first_date=day,
                last_date=day,
            )
            for day, handles in self.index.days.items()
        ]

    def _event_pages(self) -> List[Page]:
        pages = []
        for handle in self.store.sorted_handles():
            event = self.store[handle]
            pages.append(Page(
                view=CalendarView.EVENT,
                key=handle,
                events=(handle,),
                file_name=self.store.file_name(handle),
                first_date=event.date_in(self.tz),
                last_date=event.date_in(self.tz),
            ))
        return pages
