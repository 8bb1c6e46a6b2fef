"""Email template rendering.

Email bodies are Jinja2 templates shipped inside this package under
``templates/``. Every child template extends ``base.html.j2`` (the branded
wrapper) and all interpolated values are HTML-escaped by autoescaping.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from jinja2 import Environment, PackageLoader, select_autoescape

from geodesk.config import EmailConfig


class EmailRenderer:
    """Renders notification emails from package templates.

    Attributes:
        config: Email configuration (brand name, platform URL).
        env: Jinja2 environment.
    """

    def __init__(self, config: EmailConfig) -> None:
        self.config = config
        self.env = Environment(
            loader=PackageLoader("geodesk.notifications", "templates"),
            autoescape=select_autoescape(enabled_extensions=("html", "j2"), default_for_string=True),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def project_url(self, project_id: UUID | str) -> str:
        """Deep link to a project on the platform."""
        return f"{self.config.platform_url.rstrip('/')}?requestId={project_id}"

    def render(self, template_name: str, project_id: UUID | str, **context: Any) -> str:
        """Render a template for a project.

        Args:
            template_name: Template file name, e.g. ``status_changed.html.j2``.
            project_id: Project the email is about.
            **context: Template variables.

        Returns:
            Rendered HTML.
        """
        template = self.env.get_template(template_name)
        return template.render(
            brand_name=self.config.from_name,
            project_url=self.project_url(project_id),
            **context,
        )
