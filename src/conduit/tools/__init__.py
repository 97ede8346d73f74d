from conduit.tools.catalog import (
    DEFAULT_TOOL_SPECS,
    build_default_registry,
    environment_from_settings,
)
from conduit.tools.environment import ToolEnvironment
from conduit.tools.registry import ParamSpec, ToolRegistry, ToolSpec

__all__ = [
    "DEFAULT_TOOL_SPECS",
    "ParamSpec",
    "ToolEnvironment",
    "ToolRegistry",
    "ToolSpec",
    "build_default_registry",
    "environment_from_settings",
]
