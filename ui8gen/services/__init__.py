"""Built-in services."""

from .template_service import (
    GeneratedFile,
    TemplateService,
    TemplateServiceInput,
    TemplateServiceOutput,
)

__all__ = [
    "GeneratedFile",
    "TemplateService",
    "TemplateServiceInput",
    "TemplateServiceOutput",
]
