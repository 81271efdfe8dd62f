"""Config module exports."""

from codeweave.config.loader import CodeWeaveSettings, load_config
from codeweave.config.models import (
    CodeWeaveConfig,
    DeprecationConfig,
    DiscoveryConfig,
    ExclusionMode,
    LimitsConfig,
    LoggingConfig,
    RenameMode,
    WeaveConfig,
)

__all__ = [
    "load_config",
    "CodeWeaveConfig",
    "CodeWeaveSettings",
    "DeprecationConfig",
    "DiscoveryConfig",
    "ExclusionMode",
    "LimitsConfig",
    "LoggingConfig",
    "RenameMode",
    "WeaveConfig",
]
