"""Per-root derivative registries.

Each root class (the class that first enabled pluggability) owns a
:class:`PluggableDescriptor` holding its kind, search prefixes, exclusion
rules, module finder and the :class:`Registry` every descendant is
registered into. Descendants find their root by walking their MRO.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from pluggability.core.config import load_plugin_config, settings
from pluggability.core.errors import PluginConfigError, RootNotFoundError
from pluggability.plugin_runtime.finder import ModuleFinder, default_finder
from pluggability.utils.exclusions import coerce_rule
from pluggability.utils.string_utils import derivative_names, simple_name

_log = logging.getLogger(__name__)


class Registry:
    """Mapping of lookup key (name variant or the class itself) -> class."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._entries: Dict[Any, type] = {}
        self._lock = threading.RLock()

    def register(self, key: Any, cls: type) -> None:
        self.register_all([key], cls)

    def register_all(self, keys: Iterable[Any], cls: type) -> None:
        # One acquisition per class so readers never see half of its keys.
        with self._lock:
            for key in keys:
                _log.debug("Registering %s derivative of %s as %r", cls.__qualname__, self.kind, key)
                self._entries[key] = cls

    def lookup(self, key: Any) -> Optional[type]:
        with self._lock:
            return self._entries.get(key)

    def all_types(self) -> Set[type]:
        with self._lock:
            return set(self._entries.values())

    def snapshot(self) -> Dict[Any, type]:
        with self._lock:
            return dict(self._entries)

    def __contains__(self, key: Any) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


@dataclass
class PluggableDescriptor:
    root: type
    kind: str
    prefixes: List[str] = field(default_factory=list)
    exclusions: List[Any] = field(default_factory=list)
    finder: ModuleFinder = default_finder
    registry: Registry = field(init=False)

    def __post_init__(self) -> None:
        self.registry = Registry(self.kind)

    def set_prefixes(self, prefixes: Iterable[str]) -> None:
        self.prefixes = [str(p) for p in prefixes]

    def set_exclusions(self, exclusions: Iterable[Any]) -> None:
        self.exclusions = [coerce_rule(rule) for rule in exclusions]


_descriptors: Dict[type, PluggableDescriptor] = {}
_pending_config: Dict[str, Tuple[List[str], List[Any]]] = {}
_settings_config_loaded = False
_lock = threading.RLock()


def pluggable_classes() -> List[type]:
    """Every root class that has enabled pluggability, in declaration order."""
    with _lock:
        return list(_descriptors)


def descriptor_for(cls: type) -> Optional[PluggableDescriptor]:
    """The descriptor *cls* owns, if *cls* is itself a root."""
    return _descriptors.get(cls)


def find_root(cls: type) -> PluggableDescriptor:
    """Return the descriptor of the first class in *cls*'s MRO that is a root."""
    for klass in getattr(cls, '__mro__', ()):
        descriptor = _descriptors.get(klass)
        if descriptor is not None:
            return descriptor
    raise RootNotFoundError(cls)


def enable(
    root: type,
    *,
    prefixes: Optional[Iterable[str]] = None,
    exclusions: Optional[Iterable[Any]] = None,
    finder: Optional[ModuleFinder] = None,
) -> PluggableDescriptor:
    """Make *root* a pluggable root class with its own registry."""
    with _lock:
        existing = _descriptors.get(root)
        if existing is not None:
            return existing
        descriptor = PluggableDescriptor(root=root, kind=simple_name(root.__qualname__) or root.__name__)
        if finder is not None:
            descriptor.finder = finder
        _descriptors[root] = descriptor

        _load_settings_config()
        pending = _pending_config.get(descriptor.kind.lower())
        if pending is not None:
            descriptor.set_prefixes(pending[0])
            descriptor.set_exclusions(pending[1])
    if prefixes is not None:
        descriptor.set_prefixes(prefixes)
    if exclusions is not None:
        descriptor.set_exclusions(exclusions)
    _log.debug("%s enabled pluggability as kind %r", root.__qualname__, descriptor.kind)
    return descriptor


def register_derivative(root: type, cls: type) -> Optional[str]:
    """Register *cls* with the registry of *root*'s plugin base.

    *root* may be the root class itself or any of its descendants. Returns the
    name stored as ``cls.plugin_name``, or None for anonymous classes.
    """
    descriptor = find_root(root)
    keys: List[Any] = [cls]

    names = derivative_names(cls.__qualname__, descriptor.kind)
    if names:
        keys += names
    else:
        _log.debug("no name-based variants for anonymous subclass %r", cls)

    descriptor.registry.register_all(keys, cls)

    plugin_name = names[-1] if names else None
    _log.debug("Setting plugin name of %r to %r", cls, plugin_name)
    cls.plugin_name = plugin_name
    return plugin_name


def configure_kind(kind: str, prefixes: Iterable[str], exclusions: Iterable[Any]) -> None:
    """Set prefixes and exclusions for roots of *kind*, now or when declared."""
    prefixes = list(prefixes)
    exclusions = list(exclusions)
    matched = False
    with _lock:
        _pending_config[kind.lower()] = (prefixes, exclusions)
        for descriptor in _descriptors.values():
            if descriptor.kind.lower() == kind.lower():
                descriptor.set_prefixes(prefixes)
                descriptor.set_exclusions(exclusions)
                matched = True
    if not matched:
        _log.debug("no %s root declared yet; config kept for later", kind)


def _load_settings_config() -> None:
    global _settings_config_loaded
    if _settings_config_loaded:
        return
    _settings_config_loaded = True
    path = settings.config_file
    if path is None:
        return
    try:
        config = load_plugin_config(path)
    except PluginConfigError:
        _log.warning("ignoring plugin config %s", path, exc_info=True)
        return
    for kind, section in config.items():
        _pending_config.setdefault(kind.lower(), (section.prefixes, section.exclusion_rules()))
