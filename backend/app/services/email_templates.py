"""
Email Template Renderer using Handlebars (pybars3).

This module provides utilities for rendering email templates with Handlebars syntax.
Templates are stored in app/templates/email/ directory; every content template
is wrapped in the shared ``base`` layout.
"""

import logging
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from pybars import Compiler

from app.config import settings

logger = logging.getLogger(__name__)

# Template directory
TEMPLATE_DIR = Path(__file__).parent.parent / "templates" / "email"


class EmailTemplateRenderer:
    """
    Renders email templates using Handlebars (pybars3).

    Usage:
        renderer = EmailTemplateRenderer()
        html = renderer.render("intake_confirmation", {
            "name": "Ada",
            "queue_number": 4,
            "repos": "alpha, and beta",
        })
    """

    def __init__(self, template_dir: Optional[Path] = None):
        self.template_dir = template_dir or TEMPLATE_DIR
        self.compiler = Compiler()
        self._base_template = None

    @lru_cache(maxsize=20)
    def _load_template(self, name: str) -> str:
        """Load a template file from disk (cached)."""
        template_path = self.template_dir / f"{name}.hbs"
        if not template_path.exists():
            raise FileNotFoundError(f"Template not found: {template_path}")
        return template_path.read_text(encoding="utf-8")

    def _get_base_template(self):
        """Load and compile the base template."""
        if self._base_template is None:
            base_source = self._load_template("base")
            self._base_template = self.compiler.compile(base_source)
        return self._base_template

    def render(
        self,
        template_name: str,
        context: Dict[str, Any],
        subject: str = "",
    ) -> str:
        """
        Render an email template with the given context.

        Args:
            template_name: Name of the template (without .hbs extension)
            context: Dictionary of variables to pass to the template
            subject: Subject line for the email

        Returns:
            Rendered HTML string

        Raises:
            FileNotFoundError: If template file not found
        """
        content_source = self._load_template(template_name)
        content_template = self.compiler.compile(content_source)

        full_context = {
            **context,
            "app_name": settings.APP_NAME,
            "year": datetime.now().year,
            "subject": subject,
        }

        rendered_content = content_template(full_context)
        logger.debug(f"Rendered email template {template_name}")

        base_template = self._get_base_template()
        full_context["body"] = rendered_content
        return base_template(full_context)


# Singleton instance
_renderer: Optional[EmailTemplateRenderer] = None


def get_email_renderer() -> EmailTemplateRenderer:
    """Get the global email template renderer."""
    global _renderer
    if _renderer is None:
        _renderer = EmailTemplateRenderer()
    return _renderer


def render_email(
    template_name: str,
    context: Dict[str, Any],
    subject: str = "",
) -> str:
    """
    Convenience function to render an email template.

    Returns:
        Rendered HTML string
    """
    renderer = get_email_renderer()
    return renderer.render(template_name, context, subject)
