"""Writes rendered pages and their index duplicates to the output directory."""
import logging
import shutil
from pathlib import Path
from typing import List, Optional

from bs4 import BeautifulSoup

from processor.errors import ConfigurationError, OutputPathError
from processor.models import PageOutput, WriteResult
from views.renderer import TemplateRenderer

logger = logging.getLogger(__name__)


class SiteWriter:
    """Writer for the generated static site."""

    def __init__(
        self,
        output_dir: Path,
        renderer: TemplateRenderer,
        no_delete: bool = False,
        embed_in_page: Optional[Path] = None,
        embed_element_selector: str = 'main',
    ):
        """
        Initialize the site writer.

        Args:
            output_dir: Existing directory that receives the site
            renderer: TemplateRenderer used for every page
            no_delete: Keep existing files in the output directory
            embed_in_page: Host HTML page into which rendered content is embedded
            embed_element_selector: CSS selector of the host element to fill
        """
        self.output_dir = Path(output_dir)
        self.renderer = renderer
        self.no_delete = no_delete
        self.embed_in_page = embed_in_page
        self.embed_element_selector = embed_element_selector
        self._host_page: Optional[str] = None

    def prepare(self) -> None:
        """
        Check the output directory and clear its contents.

        Raises:
            OutputPathError: If the directory is missing or cannot be cleared
        """
        if not self.output_dir.is_dir():
            raise OutputPathError(f"Output directory does not exist: {self.output_dir}")

        if self.no_delete:
            logger.info(f"Keeping existing files in {self.output_dir}")
            return

        logger.info(f"Clearing output directory {self.output_dir}")
        try:
            for entry in self.output_dir.iterdir():
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
        except OSError as e:
            raise OutputPathError(f"Could not clear output directory {self.output_dir}: {e}")

    def write(self, outputs: List[PageOutput]) -> WriteResult:
        """
        Render and write every page plus its index duplicates.

        Args:
            outputs: Pages produced by the ViewGenerator

        Returns:
            WriteResult with counts of pages and index pages written

        Raises:
            OutputPathError: On the first failed write
        """
        logger.info(f"Writing {len(outputs)} pages to {self.output_dir}")
        pages_written = 0
        index_pages_written = 0
        files = []

        for output in outputs:
            document = self.render(output)

            self._write_file(output.file_path, document)
            files.append(output.file_path)
            pages_written += 1

            for index_path in output.index_paths:
                logger.debug(f"Writing {output.file_path} as {index_path}")
                self._write_file(index_path, document)
                files.append(index_path)
                index_pages_written += 1

        logger.info(
            f"Wrote {pages_written} pages and {index_pages_written} index pages"
        )
        return WriteResult(
            pages_written=pages_written,
            index_pages_written=index_pages_written,
            files=files
        )

    def render(self, output: PageOutput) -> str:
        document = self.renderer.render(output.template, output.context)
        if self.embed_in_page is not None:
            document = self.embed(document)
        return document

    def embed(self, document: str) -> str:
        """
        Place the body of a rendered document inside the host page.

        Args:
            document: Rendered HTML document

        Returns:
            Host page with the selected element's children replaced

        Raises:
            ConfigurationError: If the host element cannot be found
            OutputPathError: If the host page cannot be read
        """
        if self._host_page is None:
            try:
                self._host_page = Path(self.embed_in_page).read_text(encoding='utf-8')
            except OSError as e:
                raise OutputPathError(f"Could not read host page {self.embed_in_page}: {e}")

        host = BeautifulSoup(self._host_page, 'html.parser')
        target = host.select_one(self.embed_element_selector)
        if target is None:
            raise ConfigurationError(
                f"No element matches '{self.embed_element_selector}' in {self.embed_in_page}"
            )

        rendered = BeautifulSoup(document, 'html.parser')
        content = rendered.body if rendered.body is not None else rendered

        target.clear()
        for child in list(content.children):
            target.append(child.extract())

        return str(host)

    def _write_file(self, relative_path: str, document: str) -> None:
        path = self.output_dir / relative_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(document, encoding='utf-8')
        except OSError as e:
            raise OutputPathError(f"Could not write {path}: {e}")
