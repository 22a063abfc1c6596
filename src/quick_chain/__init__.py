"""Public package exports."""

from pydantic import BaseModel
from pydantic import Field

from quick_chain.configurator import Configurator
from quick_chain.errors import ClassificationError
from quick_chain.errors import CoercionError
from quick_chain.errors import FieldError
from quick_chain.errors import InputValidationError
from quick_chain.errors import QuickChainError
from quick_chain.errors import ResolverError
from quick_chain.errors import ToolSessionError
from quick_chain.models import ProviderSpec
from quick_chain.pipeline import Pipeline
from quick_chain.pipeline import pipeline
from quick_chain.provider import ModelClient

__all__ = [
    "BaseModel",
    "ClassificationError",
    "CoercionError",
    "Configurator",
    "Field",
    "FieldError",
    "InputValidationError",
    "ModelClient",
    "Pipeline",
    "ProviderSpec",
    "QuickChainError",
    "ResolverError",
    "ToolSessionError",
    "pipeline",
]
