__all__ = [
    "__version__",
    "Pluggable",
    "PluginError",
    "FactoryError",
    "RootNotFoundError",
    "NotADescendantError",
    "PluginNotFoundError",
    "LoadSucceededButNotRegisteredError",
    "PluginConfigError",
    "GlobRule",
    "RegexRule",
    "ModuleFinder",
    "register_derivative",
    "apply_plugin_config",
    "configure_logging",
]

# Derive the package version from installed distribution metadata when
# available; a bare source checkout falls back to a local dev version string.
from importlib.metadata import version, PackageNotFoundError
try:
	__version__ = version("pluggability")
except PackageNotFoundError:
	__version__ = "0.0.0+local"

from pluggability.core.errors import (
	FactoryError,
	LoadSucceededButNotRegisteredError,
	NotADescendantError,
	PluginConfigError,
	PluginError,
	PluginNotFoundError,
	RootNotFoundError,
)
from pluggability.core.config import apply_plugin_config
from pluggability.core.logging_config import configure_logging
from pluggability.utils.exclusions import GlobRule, RegexRule
from pluggability.plugin_runtime.finder import ModuleFinder
from pluggability.registry import register_derivative
from pluggability.base import Pluggable
