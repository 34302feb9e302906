"""Built-in orchestrator plugins."""

from .template_plugin import TemplatePlugin

__all__ = ["TemplatePlugin"]
