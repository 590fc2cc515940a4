"""pipegate: policy-gated orchestration of capability provider pipelines."""

from pipegate.capabilities import CapabilityRegistry
from pipegate.config import EngineSettings, load_settings
from pipegate.core.types import ExecutionContext, PipelineDefinition, PipelineResult, PipelineStep
from pipegate.engine import PipelineRunner
from pipegate.logging import configure_logging
from pipegate.pipelines import BUILTIN_PIPELINES
from pipegate.policy import PolicyGate, default_policy


__version__ = "0.1.0"

__all__ = [
    "BUILTIN_PIPELINES",
    "CapabilityRegistry",
    "EngineSettings",
    "ExecutionContext",
    "PipelineDefinition",
    "PipelineResult",
    "PipelineRunner",
    "PipelineStep",
    "PolicyGate",
    "configure_logging",
    "default_policy",
    "load_settings",
    "__version__",
]
