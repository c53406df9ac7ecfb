"""Exception types raised while resolving and loading derivatives."""

from __future__ import annotations

from typing import Sequence


class PluginError(RuntimeError):
    """Base class for pluggability-specific failures."""


# Older name kept for callers that still catch the factory error.
FactoryError = PluginError


class RootNotFoundError(PluginError):
    def __init__(self, cls: type) -> None:
        self.cls = cls
        super().__init__(f"Couldn't find plugin base for {cls.__qualname__}")


class NotADescendantError(PluginError, TypeError):
    def __init__(self, candidate: object, base: type) -> None:
        self.candidate = candidate
        self.base = base
        super().__init__(f"{candidate!r} is not a descendent of {base.__qualname__}")


class PluginNotFoundError(PluginError, LookupError):
    """No candidate module existed for the requested name."""

    def __init__(self, kind: str, name: str, tried: Sequence[str]) -> None:
        self.kind = kind
        self.name = name
        self.tried = list(tried)
        super().__init__(f"Couldn't find a {kind} named '{name}': tried {self.tried!r}")


class LoadSucceededButNotRegisteredError(PluginError):
    """A candidate imported cleanly but never registered the expected class.

    Usually the module name and the class name disagree, e.g. ``foo_service.py``
    declaring ``class BarService``.
    """

    def __init__(self, path: str, kind: str, name: str) -> None:
        self.path = path
        self.kind = kind
        self.name = name
        super().__init__(
            f"Load of '{path}' succeeded, but didn't load a {kind} named '{name}' for some reason."
        )


class PluginConfigError(PluginError):
    pass
