"""Groups events into day, ISO week, and month buckets."""
import logging
from dataclasses import dataclass, field
from datetime import date, tzinfo
from typing import Dict, List

from processor.event_store import EventStore
from processor.models import MonthKey, WeekKey

logger = logging.getLogger(__name__)


@dataclass
class BucketIndex:
    """Chronologically ordered bucket maps of event handles."""
    days: Dict[date, List[int]] = field(default_factory=dict)
    weeks: Dict[WeekKey, List[int]] = field(default_factory=dict)
    months: Dict[MonthKey, List[int]] = field(default_factory=dict)


class TemporalIndexer:
    """Builds day, week, and month bucket maps from an EventStore."""

    def __init__(self, display_timezone: tzinfo):
        """
        Initialize the indexer.

        Args:
            display_timezone: Timezone in which calendar dates are taken
        """
        self.display_timezone = display_timezone

    def build(self, store: EventStore) -> BucketIndex:
        """
        Bucket every event by the date of its start in the display timezone.

        Multi-day events appear only in the buckets of their start date.

        Args:
            store: EventStore with the events to index

        Returns:
            BucketIndex whose maps iterate in ascending key order
        """
        days: Dict[date, List[int]] = {}
        weeks: Dict[WeekKey, List[int]] = {}
        months: Dict[MonthKey, List[int]] = {}

        for handle in store.sorted_handles():
            local_date = store[handle].date_in(self.display_timezone)
            iso_year, iso_week, _ = local_date.isocalendar()

            days.setdefault(local_date, []).append(handle)
            weeks.setdefault((iso_year, iso_week), []).append(handle)
            months.setdefault((local_date.year, local_date.month), []).append(handle)

        index = BucketIndex(
            days=dict(sorted(days.items())),
            weeks=dict(sorted(weeks.items())),
            months=dict(sorted(months.items())),
        )
        logger.info(
            f"Indexed {len(store)} events into {len(index.days)} days, "
            f"{len(index.weeks)} weeks, {len(index.months)} months"
        )
        return index
