"""Jinja2 renderer for email subjects and bodies.

HTML bodies are autoescaped. Subjects and plain-text bodies are rendered
without escaping so that links keep their literal ``&`` separators.
"""

from jinja2 import StrictUndefined, TemplateSyntaxError, UndefinedError
from jinja2.sandbox import SandboxedEnvironment

from latchkey.core.logging import get_logger

logger = get_logger(__name__)


class TemplateRenderer:
    """Sandboxed Jinja2 renderer.

    Templates cannot reach Python internals, and a missing variable is an
    error rather than an empty string.
    """

    def __init__(self) -> None:
        options = {"trim_blocks": True, "lstrip_blocks": True, "undefined": StrictUndefined}
        self.html_env = SandboxedEnvironment(autoescape=True, **options)
        self.text_env = SandboxedEnvironment(autoescape=False, **options)

    def render(self, template_string: str, variables: dict[str, str], html: bool = True) -> str:
        """Render a template string with variables.

        Args:
            template_string: Jinja2 template string.
            variables: Dictionary of variables to substitute.
            html: Escape substituted values for HTML.

        Returns:
            Rendered template string.

        Raises:
            TemplateSyntaxError: If template syntax is invalid.
            UndefinedError: If a required variable is missing.
        """
        env = self.html_env if html else self.text_env
        try:
            return env.from_string(template_string).render(**variables)
        except TemplateSyntaxError as e:
            logger.error("Template syntax error", error=str(e), line=e.lineno)
            raise
        except UndefinedError as e:
            logger.error("Undefined variable in template", error=str(e))
            raise


_template_renderer: TemplateRenderer | None = None


def get_template_renderer() -> TemplateRenderer:
    """Get the shared template renderer instance."""
    global _template_renderer
    if _template_renderer is None:
        _template_renderer = TemplateRenderer()
    return _template_renderer
