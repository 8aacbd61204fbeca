"""Unit tests for CalendarSourceFetcher."""
import os
import time
from unittest.mock import patch

import pytest
import responses
from requests.exceptions import HTTPError

from processor.errors import CalendarSourceError
from processor.models import CacheMode, CalendarSource
from processor.settings import parse_sources
from scraper.calendar_source import CalendarSourceFetcher, is_remote

URL = 'https://example.com/calendars/club.ics'
ICS_TEXT = 'BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n'


@pytest.fixture
def remote():
    return CalendarSource(source=URL, name='club', cookies=('session=abc', 'theme=dark'))


@pytest.fixture(autouse=True)
def no_sleep():
    """Skip retry backoff delays."""
    with patch('scraper.calendar_source.time.sleep') as sleep:
        yield sleep


class TestCalendarSourceFetcher:
    """Test cases for CalendarSourceFetcher class."""

    def test_is_remote(self):
        """Test URL detection."""
        assert is_remote(URL)
        assert not is_remote('calendars/club.ics')
        assert not is_remote('/srv/calendars/club.ics')

    def test_read_relative_file(self, tmp_path):
        """Test that relative paths resolve against the base directory."""
        (tmp_path / 'local.ics').write_bytes(ICS_TEXT.encode('utf-8'))
        fetcher = CalendarSourceFetcher(base_dir=tmp_path)

        text = fetcher.fetch(CalendarSource(source='local.ics', name='local'))

        assert text == ICS_TEXT

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises CalendarSourceError."""
        fetcher = CalendarSourceFetcher(base_dir=tmp_path)

        with pytest.raises(CalendarSourceError):
            fetcher.fetch(CalendarSource(source='missing.ics', name='missing'))

    @responses.activate
    def test_download_sends_cookies_and_caches(self, tmp_path, remote):
        """Test a download with cookies in normal cache mode."""
        responses.add(responses.GET, URL, body=ICS_TEXT, status=200)
        fetcher = CalendarSourceFetcher(cache_dir=tmp_path / 'cache')

        text = fetcher.fetch(remote)

        assert text == ICS_TEXT
        assert responses.calls[0].request.headers['Cookie'] == 'session=abc; theme=dark'
        assert (tmp_path / 'cache' / 'club.ics').read_bytes() == ICS_TEXT.encode('utf-8')

    @responses.activate
    def test_fresh_cache_skips_download(self, tmp_path, remote):
        """Test that a fresh cache file is served without a request."""
        (tmp_path / 'club.ics').write_text('cached', encoding='utf-8')
        fetcher = CalendarSourceFetcher(cache_dir=tmp_path, cache_timeout=3600)

        assert fetcher.fetch(remote) == 'cached'
        assert len(responses.calls) == 0

    @responses.activate
    def test_stale_cache_downloads(self, tmp_path, remote):
        """Test that a stale cache file is replaced by a download."""
        cache_file = tmp_path / 'club.ics'
        cache_file.write_text('stale', encoding='utf-8')
        old = time.time() - 7200
        os.utime(cache_file, (old, old))
        responses.add(responses.GET, URL, body=ICS_TEXT, status=200)
        fetcher = CalendarSourceFetcher(cache_dir=tmp_path, cache_timeout=3600)

        assert fetcher.fetch(remote) == ICS_TEXT
        assert cache_file.read_bytes() == ICS_TEXT.encode('utf-8')

    @responses.activate
    def test_never_cache(self, tmp_path, remote):
        """Test that never_cache always downloads and writes nothing."""
        (tmp_path / 'club.ics').write_text('cached', encoding='utf-8')
        responses.add(responses.GET, URL, body=ICS_TEXT, status=200)
        fetcher = CalendarSourceFetcher(cache_mode=CacheMode.NEVER_CACHE, cache_dir=tmp_path)

        assert fetcher.fetch(remote) == ICS_TEXT
        assert (tmp_path / 'club.ics').read_text(encoding='utf-8') == 'cached'

    @responses.activate
    def test_never_download_uses_cache(self, tmp_path, remote):
        """Test that never_download serves even a stale cache file."""
        cache_file = tmp_path / 'club.ics'
        cache_file.write_text('cached', encoding='utf-8')
        os.utime(cache_file, (0, 0))
        fetcher = CalendarSourceFetcher(cache_mode=CacheMode.NEVER_DOWNLOAD, cache_dir=tmp_path)

        assert fetcher.fetch(remote) == 'cached'
        assert len(responses.calls) == 0

    def test_never_download_without_cache(self, tmp_path, remote):
        """Test that never_download fails when nothing is cached."""
        fetcher = CalendarSourceFetcher(cache_mode=CacheMode.NEVER_DOWNLOAD, cache_dir=tmp_path)

        with pytest.raises(CalendarSourceError):
            fetcher.fetch(remote)

    @responses.activate
    def test_retry_success(self, tmp_path, remote, no_sleep):
        """Test retry logic succeeds after initial failures."""
        responses.add(responses.GET, URL, body='Server Error', status=500)
        responses.add(responses.GET, URL, body='Server Error', status=500)
        responses.add(responses.GET, URL, body=ICS_TEXT, status=200)
        fetcher = CalendarSourceFetcher(cache_mode=CacheMode.NEVER_CACHE, cache_dir=tmp_path)

        assert fetcher.fetch(remote) == ICS_TEXT
        assert len(responses.calls) == 3
        assert [call.args[0] for call in no_sleep.call_args_list] == [1, 2]

    @responses.activate
    def test_all_retries_fail(self, tmp_path, remote):
        """Test that the last request error propagates when all retries fail."""
        for _ in range(3):
            responses.add(responses.GET, URL, body='Server Error', status=500)
        fetcher = CalendarSourceFetcher(cache_mode=CacheMode.NEVER_CACHE, cache_dir=tmp_path)

        with pytest.raises(HTTPError):
            fetcher.fetch(remote)

        assert len(responses.calls) == 3

    def test_crlf_file_read_unchanged(self, tmp_path):
        """Test that CRLF line endings in a calendar file are preserved."""
        (tmp_path / 'crlf.ics').write_bytes(b'BEGIN:VCALENDAR\r\nVERSION:2.0\r\nEND:VCALENDAR\r\n')
        fetcher = CalendarSourceFetcher(base_dir=tmp_path)

        text = fetcher.fetch(CalendarSource(source='crlf.ics', name='crlf'))

        assert text == 'BEGIN:VCALENDAR\r\nVERSION:2.0\r\nEND:VCALENDAR\r\n'

    @responses.activate
    def test_cached_crlf_text_unchanged(self, tmp_path, remote):
        """Test that a cached download is served with its original line endings."""
        responses.add(responses.GET, URL, body=ICS_TEXT, status=200)
        fetcher = CalendarSourceFetcher(cache_dir=tmp_path, cache_timeout=3600)

        first = fetcher.fetch(remote)
        second = fetcher.fetch(remote)

        assert first == second == ICS_TEXT
        assert len(responses.calls) == 1

    @responses.activate
    def test_same_file_name_sources_use_separate_cache_entries(self, tmp_path):
        """Test that feeds whose URLs end in the same file name are cached apart."""
        alice_url = 'https://calendar.example.com/ical/alice/public/basic.ics'
        bob_url = 'https://calendar.example.com/ical/bob/public/basic.ics'
        alice_ics = 'BEGIN:VCALENDAR\r\nX-WR-CALNAME:Alice\r\nEND:VCALENDAR\r\n'
        bob_ics = 'BEGIN:VCALENDAR\r\nX-WR-CALNAME:Bob\r\nEND:VCALENDAR\r\n'
        responses.add(responses.GET, alice_url, body=alice_ics, status=200)
        responses.add(responses.GET, bob_url, body=bob_ics, status=200)
        alice, bob = parse_sources(f"{alice_url},{bob_url}")
        fetcher = CalendarSourceFetcher(cache_dir=tmp_path, cache_timeout=3600)

        assert fetcher.cache_path(alice) != fetcher.cache_path(bob)
        assert fetcher.fetch(alice) == alice_ics
        assert fetcher.fetch(bob) == bob_ics
        assert len(responses.calls) == 2
