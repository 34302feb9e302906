"""Built-in pipeline stages."""

from .template_stage import RESULT_KEY, TemplateStage, TemplateStageOptions

__all__ = ["RESULT_KEY", "TemplateStage", "TemplateStageOptions"]
