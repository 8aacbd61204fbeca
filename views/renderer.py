"""Jinja2 rendering of page contexts."""
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, StrictUndefined, select_autoescape

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / 'templates'


class TemplateRenderer:
    """Renders templates from a user directory, falling back to the bundled set."""

    def __init__(self, template_path: Optional[Path] = None):
        """
        Initialize the Jinja2 environment.

        Args:
            template_path: Directory whose templates override the bundled ones
        """
        loaders = []
        if template_path is not None:
            logger.info(f"Using templates from {template_path}")
            loaders.append(FileSystemLoader(str(template_path)))
        loaders.append(FileSystemLoader(str(DEFAULT_TEMPLATE_DIR)))

        self.environment = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(['html']),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with the given context.

        Args:
            template_name: Template file name, e.g. "month.html"
            context: Values produced by the ViewContextBuilder

        Returns:
            Rendered document
        """
        template = self.environment.get_template(template_name)
        return template.render(**context)
