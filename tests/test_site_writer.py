"""Unit tests for SiteWriter."""
import dataclasses

import pytest
from bs4 import BeautifulSoup

from processor.errors import ConfigurationError, OutputPathError
from processor.models import CalendarView, PageOutput
from processor.temporal_indexer import TemporalIndexer
from storage.site_writer import SiteWriter
from views.generator import ViewGenerator
from views.renderer import TemplateRenderer


@pytest.fixture
def renderer(tmp_path):
    """Renderer with a tiny override template."""
    templates = tmp_path / 'templates'
    templates.mkdir()
    (templates / 'plain.html').write_text(
        '<html><body><h1>{{ title }}</h1><p>{{ body }}</p></body></html>', encoding='utf-8'
    )
    return TemplateRenderer(templates)


@pytest.fixture
def output_dir(tmp_path):
    path = tmp_path / 'site'
    path.mkdir()
    return path


def plain_output(file_path, index_paths=(), title='Hello', body='World'):
    return PageOutput(
        view=CalendarView.DAY,
        template='plain.html',
        file_path=file_path,
        context={'title': title, 'body': body},
        index_paths=list(index_paths),
    )


class TestSiteWriter:
    """Test cases for SiteWriter class."""

    def test_prepare_missing_directory(self, tmp_path, renderer):
        """Test that a missing output directory is an OutputPathError."""
        writer = SiteWriter(tmp_path / 'nowhere', renderer)

        with pytest.raises(OutputPathError):
            writer.prepare()

    def test_prepare_file_instead_of_directory(self, tmp_path, renderer):
        """Test that a file in place of the output directory is rejected."""
        path = tmp_path / 'file'
        path.write_text('x', encoding='utf-8')

        with pytest.raises(OutputPathError):
            SiteWriter(path, renderer).prepare()

    def test_prepare_clears_contents(self, output_dir, renderer):
        """Test that old files and directories are removed."""
        (output_dir / 'old.html').write_text('old', encoding='utf-8')
        (output_dir / 'month').mkdir()
        (output_dir / 'month' / '2020-1.html').write_text('old', encoding='utf-8')

        SiteWriter(output_dir, renderer).prepare()

        assert list(output_dir.iterdir()) == []

    def test_prepare_no_delete(self, output_dir, renderer):
        """Test that no_delete keeps existing files."""
        (output_dir / 'keep.html').write_text('keep', encoding='utf-8')

        SiteWriter(output_dir, renderer, no_delete=True).prepare()

        assert (output_dir / 'keep.html').exists()

    def test_write_pages_and_index_duplicates(self, output_dir, renderer):
        """Test that index paths receive copies of their page."""
        outputs = [
            plain_output('day/2024-03-14.html', title='Thursday'),
            plain_output('day/2024-03-15.html', ['day/index.html', 'index.html'], title='Friday'),
        ]

        result = SiteWriter(output_dir, renderer).write(outputs)

        assert result.pages_written == 2
        assert result.index_pages_written == 2
        page = (output_dir / 'day' / '2024-03-15.html').read_text(encoding='utf-8')
        assert 'Friday' in page
        assert (output_dir / 'day' / 'index.html').read_text(encoding='utf-8') == page
        assert (output_dir / 'index.html').read_text(encoding='utf-8') == page

    def test_write_escapes_html(self, output_dir, renderer):
        """Test that context values are autoescaped."""
        SiteWriter(output_dir, renderer).write([plain_output('a.html', body='<script>x</script>')])

        assert '&lt;script&gt;' in (output_dir / 'a.html').read_text(encoding='utf-8')

    def test_write_failure(self, output_dir, renderer):
        """Test that a failed write becomes an OutputPathError."""
        (output_dir / 'day').write_text('not a directory', encoding='utf-8')

        with pytest.raises(OutputPathError):
            SiteWriter(output_dir, renderer).write([plain_output('day/2024-03-15.html')])

    def test_embed_in_host_page(self, tmp_path, output_dir, renderer):
        """Test that rendered content replaces the host element's children."""
        host = tmp_path / 'host.html'
        host.write_text(
            '<html><head><title>Club</title></head>'
            '<body><nav>Menu</nav><main><p>placeholder</p></main></body></html>',
            encoding='utf-8'
        )
        writer = SiteWriter(output_dir, renderer, embed_in_page=host)

        writer.write([plain_output('a.html', title='Calendar')])

        soup = BeautifulSoup((output_dir / 'a.html').read_text(encoding='utf-8'), 'html.parser')
        assert soup.title.string == 'Club'
        assert soup.nav.string == 'Menu'
        assert soup.main.h1.string == 'Calendar'
        assert 'placeholder' not in soup.main.get_text()

    def test_embed_missing_element(self, tmp_path, output_dir, renderer):
        """Test that a host page without the selected element is a configuration error."""
        host = tmp_path / 'host.html'
        host.write_text('<html><body><div>No main here</div></body></html>', encoding='utf-8')
        writer = SiteWriter(output_dir, renderer, embed_in_page=host, embed_element_selector='#calendar')

        with pytest.raises(ConfigurationError):
            writer.write([plain_output('a.html')])

    def test_bundled_templates_render_every_view(self, config, make_event, make_store, tz, output_dir):
        """Test that the bundled templates accept every generated context."""
        store = make_store([
            make_event('Spring Concert', 2024, 3, 2, hour=19, location='Town Square'),
            make_event('Farmers Market', 2024, 3, 16, hour=8, description='Fresh produce'),
        ])
        outputs = ViewGenerator(config, store, TemporalIndexer(tz).build(store)).generate()

        result = SiteWriter(output_dir, TemplateRenderer()).write(outputs)

        assert result.pages_written == len(outputs)
        root = (output_dir / 'index.html').read_text(encoding='utf-8')
        assert root == (output_dir / 'month' / '2024-3.html').read_text(encoding='utf-8')
        assert 'Spring Concert' in root
        assert (output_dir / 'agenda' / 'index.html').exists()
        assert (output_dir / 'event' / store.file_name(1)).exists()

    def test_bundled_templates_with_color_and_disabled_views(self, config, make_event, make_store, tz, output_dir):
        """Test that calendar colours render and disabled views are not linked."""
        config = dataclasses.replace(config, render_day=False, render_event=False)
        store = make_store([make_event('Club Night', 2024, 3, 8, calendar_color='#3366cc')])
        outputs = ViewGenerator(config, store, TemporalIndexer(tz).build(store)).generate()

        SiteWriter(output_dir, TemplateRenderer()).write(outputs)

        soup = BeautifulSoup((output_dir / 'month' / '2024-3.html').read_text(encoding='utf-8'), 'html.parser')
        assert '#3366cc' in soup.find('article', class_='event')['style']
        assert soup.find('a', href='/day/') is None
        assert not any('/event/' in link['href'] or '/day/' in link['href'] for link in soup.find_all('a'))
        assert not (output_dir / 'day').exists()
