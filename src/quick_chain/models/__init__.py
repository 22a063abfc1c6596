"""Model types for pipeline configuration and runtime."""

from quick_chain.models.default_input import DefaultInput
from quick_chain.models.pipeline_config import DEFAULT_LOG_LEVEL
from quick_chain.models.pipeline_config import DEFAULT_MODEL
from quick_chain.models.pipeline_config import Example
from quick_chain.models.pipeline_config import PipelineConfig
from quick_chain.models.provider_spec import ProviderSpec
from quick_chain.models.tool_descriptor import ToolDescriptor

__all__ = [
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_MODEL",
    "DefaultInput",
    "Example",
    "PipelineConfig",
    "ProviderSpec",
    "ToolDescriptor",
]
