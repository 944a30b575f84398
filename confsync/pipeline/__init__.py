"""Resource loading and the stage-and-commit pipeline."""

from .loader import load_resource
from .processor import ProcessReport, process_all
from .resource import TemplateResource

__all__ = ["ProcessReport", "TemplateResource", "load_resource", "process_all"]
