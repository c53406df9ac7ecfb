"""Filesystem search and import primitives used by the derivative loader.

Search roots are the explicit ``search_paths`` given to :class:`ModuleFinder`,
or ``settings.search_paths`` followed by every directory on ``sys.path``.
Roots are re-read on every call so that ``sys.path`` changes made after
startup are honoured.
"""

from __future__ import annotations

import importlib.util
import logging
import os
import sys
from pathlib import Path
from types import ModuleType
from typing import Dict, Iterable, List, Optional

from pluggability.core.config import settings

_log = logging.getLogger(__name__)


class ModuleFinder:
    def __init__(self, search_paths: Optional[Iterable[str | os.PathLike]] = None) -> None:
        self._search_paths = [Path(p) for p in search_paths] if search_paths is not None else None
        self._found_under: Dict[str, Path] = {}

    def search_roots(self) -> List[Path]:
        if self._search_paths is not None:
            raw = list(self._search_paths)
        else:
            raw = list(settings.search_paths) + [Path(p or os.getcwd()) for p in sys.path]
        roots: List[Path] = []
        for root in raw:
            try:
                resolved = root.resolve()
            except OSError:
                continue
            if resolved.is_dir() and resolved not in roots:
                roots.append(resolved)
        return roots

    def find_files(self, pattern: str) -> List[Path]:
        """Glob *pattern* under every search root.

        A root-relative path found under an earlier root shadows the same
        path under later roots, the way ``import`` would resolve it. The root
        each match came from is remembered for :meth:`module_name`.
        """
        seen: set[str] = set()
        found: List[Path] = []
        for root in self.search_roots():
            for match in sorted(root.glob(pattern)):
                rel = match.relative_to(root).as_posix()
                if rel in seen:
                    _log.debug("%s is shadowed by an earlier search root", match)
                    continue
                seen.add(rel)
                self._found_under[str(match)] = root
                found.append(match)
        return found

    def is_regular_file(self, path: str | os.PathLike) -> bool:
        return Path(path).is_file()

    def module_name(self, path: str | os.PathLike) -> str:
        """Dotted module name for *path* relative to the root it was found under.

        Paths that didn't come from :meth:`find_files` are named relative to the
        deepest search root containing them. Raises ``ValueError`` when no root
        gives a name made of valid identifiers.
        """
        found_under = self._found_under.get(str(path))
        path = Path(path).resolve()
        roots = sorted(
            (root for root in self.search_roots() if path.is_relative_to(root)),
            key=lambda root: len(root.parts),
            reverse=True,
        )
        if found_under in roots:
            roots.remove(found_under)
            roots.insert(0, found_under)

        for root in roots:
            parts = list(path.relative_to(root).with_suffix('').parts)
            if parts and parts[-1] == '__init__':
                parts.pop()
            if parts and all(part.isidentifier() for part in parts):
                return '.'.join(parts)
            _log.debug("%s can't be imported relative to %s", path, root)

        if not roots:
            name = path.stem if path.name != '__init__.py' else path.parent.name
            if name.isidentifier():
                return name
        raise ValueError(f"No importable module name for {path} under {[str(r) for r in roots]}")

    def load(self, path: str | os.PathLike, module_name: str) -> ModuleType:
        """Import the file at *path* as *module_name*.

        Raises ``ModuleNotFoundError`` if nothing importable is at *path*; any
        error raised while executing the module propagates unchanged.
        """
        path = Path(path)
        existing = sys.modules.get(module_name)
        if existing is not None and _same_file(getattr(existing, '__file__', None), path):
            _log.debug("module %s already loaded from %s", module_name, path)
            return existing

        if not path.is_file():
            raise ModuleNotFoundError(f"No module named {module_name!r} at {path}", name=module_name)
        search_locations = [str(path.parent)] if path.name == '__init__.py' else None
        spec = importlib.util.spec_from_file_location(
            module_name, path, submodule_search_locations=search_locations
        )
        if spec is None or spec.loader is None:
            raise ModuleNotFoundError(f"No module named {module_name!r} at {path}", name=module_name)

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise
        _log.debug("imported %s from %s", module_name, path)
        return module


def _same_file(filename: Optional[str], path: Path) -> bool:
    if not filename:
        return False
    try:
        return Path(filename).resolve() == path.resolve()
    except OSError:
        return False


default_finder = ModuleFinder()
