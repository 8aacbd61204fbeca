"""Command-line entry point for static calendar site generation."""
import argparse
import dataclasses
import json
import logging
import time
from pathlib import Path
from typing import List, Optional

from processor.errors import ConfigurationError
from processor.event_processor import EventProcessor
from processor.event_store import EventStore
from processor.models import CalendarView, RunResult
from processor.settings import SiteConfig, build_sources
from processor.temporal_indexer import TemporalIndexer
from scraper.calendar_source import CalendarSourceFetcher
from scraper.ics_parser import IcsParser
from storage.feed_writer import FeedWriter
from storage.site_writer import SiteWriter
from views.generator import ViewGenerator
from views.renderer import TemplateRenderer

logger = logging.getLogger(__name__)


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def generate_site(config: SiteConfig) -> RunResult:
    """
    Fetch, parse, and render every configured calendar into the output directory.

    Args:
        config: Validated SiteConfig

    Returns:
        RunResult with event and page counts

    Raises:
        CalendarSiteError: On the first configuration, source, date, or output failure
        requests.RequestException: If a download fails after retries
    """
    if not config.calendar_sources:
        raise ConfigurationError("No calendar sources configured")

    tz = config.timezone()
    fetcher = CalendarSourceFetcher(
        timeout=config.timeout_seconds,
        cache_mode=config.cache_mode,
        cache_dir=config.cache_dir,
        cache_timeout=config.cache_timeout_seconds,
    )
    parser = IcsParser()

    raw_events = []
    unparsed = set()
    for source in config.calendar_sources:
        result = parser.parse(fetcher.fetch(source), source)
        raw_events.extend(result.events)
        unparsed.update(result.unparsed_properties)
    logger.info(f"Read {len(raw_events)} raw events from {len(config.calendar_sources)} calendars")

    events = EventProcessor(tz).process_events(raw_events)
    store = EventStore(tz, events)
    index = TemporalIndexer(tz).build(store)

    writer = SiteWriter(
        output_dir=config.output_dir,
        renderer=TemplateRenderer(config.template_path),
        no_delete=config.no_delete,
        embed_in_page=config.embed_in_page,
        embed_element_selector=config.embed_element_selector,
    )
    writer.prepare()
    write_result = writer.write(ViewGenerator(config, store, index).generate())

    feed_path = None
    if config.render_feed:
        feed_path = str(FeedWriter(config.output_dir).write(store))

    return RunResult(
        raw_events=len(raw_events),
        events=len(store),
        pages_written=write_result.pages_written,
        index_pages_written=write_result.index_pages_written,
        unparsed_properties=sorted(unparsed),
        feed_path=feed_path,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a static calendar website from ICS files and feeds."
    )
    parser.add_argument(
        '--source', action='append', dest='sources', metavar='PATH_OR_URL',
        help="Calendar file or URL; may be repeated (overrides CALENDAR_SOURCES)"
    )
    parser.add_argument('--output-dir', help="Existing directory to write the site into")
    parser.add_argument('--today', help="Date the index pages are chosen around (default: today)")
    parser.add_argument(
        '--default-view', choices=[view.value for view in CalendarView if view is not CalendarView.EVENT],
        type=str.lower, help="View written as the site root index.html"
    )
    parser.add_argument(
        '--no-delete', action='store_true', default=None,
        help="Keep existing files in the output directory"
    )
    parser.add_argument('--log-level', help="DEBUG, INFO, WARNING or ERROR")
    return parser


def load_config(args: argparse.Namespace) -> SiteConfig:
    """Read the environment configuration and apply command-line overrides."""
    config = SiteConfig.from_env()
    overrides = {}
    if args.sources:
        overrides['calendar_sources'] = build_sources(args.sources)
    if args.output_dir:
        overrides['output_dir'] = Path(args.output_dir)
    if args.today:
        overrides['calendar_today_date'] = args.today
    if args.default_view:
        overrides['default_calendar_view'] = CalendarView.parse(args.default_view)
    if args.no_delete:
        overrides['no_delete'] = True
    if args.log_level:
        overrides['log_level'] = args.log_level
    return dataclasses.replace(config, **overrides)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run one site generation.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])

    Returns:
        Process exit status: 0 on success, 1 on failure
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level or 'INFO')
    start_time = time.time()

    try:
        config = load_config(args)
        setup_logging(config.log_level)
        logger.info(
            f"Generating site into {config.output_dir} from "
            f"{len(config.calendar_sources)} calendar sources"
        )

        result = generate_site(config)

        duration = time.time() - start_time
        logger.info(
            f"Site generation completed in {round(duration, 2)} seconds: "
            f"{result.events} events from {result.raw_events} records, "
            f"{result.pages_written} pages, {result.index_pages_written} index pages"
        )
        if result.unparsed_properties:
            logger.info(f"Unparsed properties: {', '.join(result.unparsed_properties)}")
        return 0

    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"Site generation failed after {round(duration, 2)} seconds "
            f"({type(e).__name__}): {str(e)}",
            exc_info=True
        )
        return 1


if __name__ == '__main__':
    raise SystemExit(main())
