"""
Pipeline package for running builder filters over requests and responses.

- context: named requests/responses and shared data passed between filters
- executor: builds filters from config records and runs them in order
"""

from flowbuilder.pipeline.context import PipelineContext
from flowbuilder.pipeline.executor import Pipeline

__all__ = ["Pipeline", "PipelineContext"]
