"""The :class:`Pluggable` base class.

Subclassing ``Pluggable`` directly (or passing ``pluggable=True``) makes a
class a plugin root. Every class declared beneath a root is registered under
variants of its name, and can then be created by that name::

    class Service(Pluggable, prefixes=['services']):
        pass

    class FooService(Service):
        pass

    Service.create('foo')          # -> FooService()
    Service.create('bar')          # imports services/bar_service.py first
"""

from __future__ import annotations

import logging
import types
from typing import Any, Dict, Iterable, List, Optional, Set

from pluggability import registry
from pluggability.core.errors import NotADescendantError, PluginError
from pluggability.plugin_runtime.finder import ModuleFinder
from pluggability.plugin_runtime.loader import DerivativeLoader

_log = logging.getLogger(__name__)


class Pluggable:
    plugin_name: Optional[str] = None

    def __init_subclass__(
        cls,
        *,
        pluggable: Optional[bool] = None,
        prefixes: Optional[Iterable[str]] = None,
        exclusions: Optional[Iterable[Any]] = None,
        finder: Optional[ModuleFinder] = None,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        is_root = pluggable if pluggable is not None else Pluggable in cls.__bases__

        # A class that starts its own root is still a derivative of any root above it.
        parent_root = next((k for k in cls.__mro__[1:] if registry.descriptor_for(k)), None)
        if parent_root is not None:
            _log.debug("  %s inherited by %s", parent_root.__qualname__, cls.__qualname__)
            registry.register_derivative(parent_root, cls)

        if is_root:
            registry.enable(cls, prefixes=prefixes, exclusions=exclusions, finder=finder)
        elif prefixes is not None or exclusions is not None or finder is not None:
            raise TypeError(
                f"{cls.__qualname__} is not a plugin root; configure "
                f"{registry.find_root(cls).root.__qualname__} instead"
            )

    @classmethod
    def plugin_descriptor(cls) -> registry.PluggableDescriptor:
        return registry.find_root(cls)

    @classmethod
    def plugin_type(cls) -> str:
        """The kind name used when searching for a derivative."""
        return cls.plugin_descriptor().kind

    factory_type = plugin_type

    @classmethod
    def plugin_prefixes(cls, *prefixes: str) -> List[str]:
        """Get, or replace and get, the module prefixes searched for derivatives."""
        descriptor = cls.plugin_descriptor()
        if prefixes:
            descriptor.set_prefixes(prefixes)
        return descriptor.prefixes

    @classmethod
    def plugin_exclusions(cls, *exclusions: Any) -> List[Any]:
        """Get, or replace and get, the rules that keep matching paths from loading.

        Strings are globs (``'**/tests/**'``), compiled patterns are regexes.
        """
        descriptor = cls.plugin_descriptor()
        if exclusions:
            descriptor.set_exclusions(exclusions)
        return descriptor.exclusions

    @classmethod
    def set_plugin_prefixes(cls, *prefixes: str) -> List[str]:
        """Replace the module prefixes; with no arguments, clear them."""
        descriptor = cls.plugin_descriptor()
        descriptor.set_prefixes(prefixes)
        return descriptor.prefixes

    @classmethod
    def set_plugin_exclusions(cls, *exclusions: Any) -> List[Any]:
        """Replace the exclusion rules; with no arguments, clear them."""
        descriptor = cls.plugin_descriptor()
        descriptor.set_exclusions(exclusions)
        return descriptor.exclusions

    @classmethod
    def derivatives(cls) -> Dict[Any, type]:
        return cls.plugin_descriptor().registry.snapshot()

    @classmethod
    def derivative_classes(cls) -> Set[type]:
        return cls.plugin_descriptor().registry.all_types()

    @classmethod
    def load_all(cls) -> Set[type]:
        """Import every derivative module that can be found; returns all derivatives."""
        return DerivativeLoader(cls.plugin_descriptor()).load_all()

    @classmethod
    def get_subclass(cls, class_name: Any) -> type:
        """Resolve *class_name* to a class, loading its module if needed.

        *class_name* may be the class itself, its full name, or the unique part
        of its name (``'FooService'``, ``'foo_service'`` and ``'foo'`` all find
        ``FooService`` for a ``Service`` root).
        """
        if class_name is cls or class_name == cls.__name__ or class_name == '':
            return cls
        if isinstance(class_name, type):
            if issubclass(class_name, cls):
                return class_name
            raise NotADescendantError(class_name, cls)

        class_name = str(class_name)
        descriptor = cls.plugin_descriptor()
        key = class_name.lower()

        subclass = descriptor.registry.lookup(key)
        if subclass is None:
            DerivativeLoader(descriptor).load_derivative(class_name)
            subclass = descriptor.registry.lookup(key)
            if not isinstance(subclass, type):
                raise PluginError(
                    f"load_derivative({class_name}) added something other than a class "
                    f"to the registry for {descriptor.kind}: {subclass!r}"
                )

        if not issubclass(subclass, cls):
            raise NotADescendantError(subclass, cls)
        return subclass

    @classmethod
    def create(cls, class_name: Any, *args: Any, **kwargs: Any) -> Any:
        """Resolve *class_name* with :meth:`get_subclass` and instantiate it.

        Errors raised by the constructor propagate unchanged apart from a
        ``When creating ...`` note and the removal of this module's frames
        from the traceback.
        """
        subclass = cls.get_subclass(class_name)
        try:
            return subclass(*args, **kwargs)
        except Exception as err:
            err.add_note(f"When creating '{class_name}'")
            raise err.with_traceback(_strip_own_frames(err.__traceback__))


def _strip_own_frames(tb: Optional[types.TracebackType]) -> Optional[types.TracebackType]:
    frames = []
    while tb is not None:
        if tb.tb_frame.f_code.co_filename != __file__:
            frames.append(tb)
        tb = tb.tb_next

    nicetrace = None
    for frame in reversed(frames):
        nicetrace = types.TracebackType(nicetrace, frame.tb_frame, frame.tb_lasti, frame.tb_lineno)
    return nicetrace
