"""Derivative loader.

Turns a requested derivative name into candidate module paths, imports the
first one that exists and reports what was tried when nothing matched.
Single-name loads are fail-loud; :meth:`DerivativeLoader.load_all` is
best-effort and only logs failures.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Set

from pluggability.core.errors import LoadSucceededButNotRegisteredError, PluginNotFoundError
from pluggability.plugin_runtime.candidates import candidate_files, load_all_patterns, plugin_path_candidates
from pluggability.registry import PluggableDescriptor
from pluggability.utils.exclusions import is_excluded_path
from pluggability.utils.string_utils import module_name_for

_log = logging.getLogger(__name__)


def _names_missing_module(err: ModuleNotFoundError, module_name: str) -> bool:
    # A missing dependency of the plugin also raises ModuleNotFoundError; only
    # the module itself (or one of its parent packages) counts as "absent".
    missing = err.name
    if not missing:
        return False
    return module_name == missing or module_name.startswith(missing + '.')


class DerivativeLoader:
    def __init__(self, descriptor: PluggableDescriptor) -> None:
        self.descriptor = descriptor

    @property
    def kind(self) -> str:
        return self.descriptor.kind

    def is_excluded_path(self, path) -> bool:
        return is_excluded_path(path, self.descriptor.exclusions)

    def plugin_path_candidates(self, mod_name: str) -> List[str]:
        return plugin_path_candidates(mod_name, self.descriptor.prefixes, self.kind)

    def load_derivative(self, class_name: str) -> str:
        """Load the module expected to declare *class_name* and check it registered."""
        _log.debug("Loading derivative %s", class_name)
        mod_name = module_name_for(class_name, self.kind)
        path = self.require_derivative(mod_name)

        if self.descriptor.registry.lookup(class_name.lower()) is None:
            err = LoadSucceededButNotRegisteredError(path, self.kind, class_name.lower())
            _log.error("%s", err)
            raise err
        return path

    def require_derivative(self, mod_name: str) -> str:
        """Import the first candidate module for *mod_name* and return its path.

        Candidates that don't exist are skipped. Errors raised by candidates
        that do exist are held back while the remaining candidates are tried;
        if none loads, the first of them is re-raised as-is.
        """
        finder = self.descriptor.finder
        candidates = self.plugin_path_candidates(mod_name)
        _log.debug("Candidates for %r are: %r", mod_name, candidates)

        fatals: List[BaseException] = []
        seen: Set[str] = set()
        for candidate in candidates:
            for pattern in candidate_files(candidate):
                for path in finder.find_files(pattern):
                    key = str(path)
                    if key in seen:
                        continue
                    seen.add(key)
                    if self.is_excluded_path(path) or not finder.is_regular_file(path):
                        continue
                    try:
                        module_name = finder.module_name(path)
                        _log.debug("trying %s as module %s", path, module_name)
                        finder.load(path, module_name)
                    except ModuleNotFoundError as exc:
                        if not _names_missing_module(exc, module_name):
                            _log.debug("load of %s failed: %s", path, exc)
                            fatals.append(exc)
                        else:
                            _log.debug("nothing loadable at %s: %s", path, exc)
                    except Exception as exc:  # noqa: BLE001 - re-raised below if nothing else loads
                        _log.debug("load of %s failed: %s: %s", path, type(exc).__name__, exc)
                        fatals.append(exc)
                    else:
                        return key

        if fatals:
            _log.debug("re-raising first of %d load failures for %r", len(fatals), mod_name)
            raise fatals[0]

        err = PluginNotFoundError(self.kind, mod_name, candidates)
        _log.error("%s", err)
        raise err

    def load_all(self) -> Set[type]:
        """Find and import every derivative module; failures are logged and skipped."""
        _log.debug("Loading all %s derivatives.", self.kind)
        finder = self.descriptor.finder
        seen: Set[str] = set()

        for pattern in load_all_patterns(self.descriptor.prefixes, self.kind):
            candidates = finder.find_files(pattern)
            _log.debug("  found %d files matching %r", len(candidates), pattern)
            for path in candidates:
                key = str(path)
                if key in seen:
                    continue
                seen.add(key)
                if _is_prefix_init(path, pattern):
                    continue
                if self.is_excluded_path(path) or not finder.is_regular_file(path):
                    continue
                try:
                    finder.load(path, finder.module_name(path))
                except Exception:  # noqa: BLE001 - load_all is best-effort
                    _log.warning("failed to load %s derivative from %s", self.kind, path, exc_info=True)

        return self.descriptor.registry.all_types()


def _is_prefix_init(path, pattern: str) -> bool:
    # `prefix/*.py` also matches the prefix package's own __init__.py.
    return Path(path).name == '__init__.py' and not pattern.endswith('/__init__.py')
