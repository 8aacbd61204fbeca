"""Retrieval of calendar files from local paths and URLs."""
import logging
import time
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import requests

from processor.errors import CalendarSourceError
from processor.models import CacheMode, CalendarSource

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = ('http', 'https')


def is_remote(source: str) -> bool:
    parsed = urlparse(source)
    return parsed.scheme in REMOTE_SCHEMES and bool(parsed.netloc)


class CalendarSourceFetcher:
    """Fetcher for ICS text, with an on-disk cache for remote calendars."""

    max_retries = 3
    base_delay = 1  # seconds

    def __init__(
        self,
        timeout: int = 30,
        cache_mode: CacheMode = CacheMode.NORMAL,
        cache_dir: Path = Path('calendar_cache'),
        cache_timeout: int = 86400,
        base_dir: Optional[Path] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            timeout: HTTP request timeout in seconds (default: 30)
            cache_mode: How downloads use the cache directory
            cache_dir: Directory holding cached calendar files
            cache_timeout: Age in seconds after which a cached file is stale
            base_dir: Directory that relative file sources are resolved against
        """
        self.timeout = timeout
        self.cache_mode = cache_mode
        self.cache_dir = Path(cache_dir)
        self.cache_timeout = cache_timeout
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()

    def fetch(self, source: CalendarSource) -> str:
        """
        Return the ICS text of a calendar source.

        Args:
            source: Configured CalendarSource

        Returns:
            ICS document as string

        Raises:
            CalendarSourceError: If a file or cache entry cannot be read
            requests.RequestException: If all download attempts fail
        """
        if is_remote(source.source):
            return self._fetch_remote(source)
        return self._read_file(source)

    def cache_path(self, source: CalendarSource) -> Path:
        return self.cache_dir / f"{source.name}.ics"

    def _read_file(self, source: CalendarSource) -> str:
        path = Path(source.source)
        if not path.is_absolute():
            path = self.base_dir / path

        logger.info(f"Reading calendar {source.name} from {path}")
        try:
            return path.read_bytes().decode('utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise CalendarSourceError(f"Could not read calendar file {path}: {e}")

    def _fetch_remote(self, source: CalendarSource) -> str:
        cache_file = self.cache_path(source)

        if self.cache_mode is CacheMode.NEVER_DOWNLOAD:
            if not cache_file.is_file():
                raise CalendarSourceError(
                    f"No cached copy of {source.source} at {cache_file} and downloads are disabled"
                )
            return self._read_cache(cache_file)

        if self.cache_mode is CacheMode.NORMAL and self._is_fresh(cache_file):
            logger.info(f"Using cached calendar {cache_file}")
            return self._read_cache(cache_file)

        text = self._download(source)

        if self.cache_mode is CacheMode.NORMAL:
            self._write_cache(cache_file, text)
        return text

    def _download(self, source: CalendarSource) -> str:
        """
        Download a calendar with retry logic.

        Raises:
            requests.RequestException: If all retry attempts fail
        """
        headers = {}
        if source.cookies:
            headers['Cookie'] = '; '.join(source.cookies)

        for attempt in range(self.max_retries):
            try:
                logger.info(
                    f"Downloading calendar {source.name} (attempt {attempt + 1}/{self.max_retries})"
                )
                response = requests.get(
                    source.source,
                    headers=headers,
                    timeout=self.timeout
                )
                response.raise_for_status()
                return response.text

            except requests.RequestException as e:
                if attempt < self.max_retries - 1:
                    delay = self.base_delay * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.max_retries}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.max_retries} retry attempts failed. Last error: {e}"
                    )
                    raise

    def _is_fresh(self, cache_file: Path) -> bool:
        try:
            age = time.time() - cache_file.stat().st_mtime
        except OSError:
            return False
        return age < self.cache_timeout

    def _read_cache(self, cache_file: Path) -> str:
        try:
            return cache_file.read_bytes().decode('utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise CalendarSourceError(f"Could not read cache file {cache_file}: {e}")

    def _write_cache(self, cache_file: Path, text: str) -> None:
        try:
            cache_file.parent.mkdir(parents=True, exist_ok=True)
            cache_file.write_bytes(text.encode('utf-8'))
            logger.debug(f"Cached calendar at {cache_file}")
        except OSError as e:
            raise CalendarSourceError(f"Could not write cache file {cache_file}: {e}")
