"""Test doubles for the module search/load primitives."""

import fnmatch
import textwrap
import types
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, List, Optional

from pluggability.plugin_runtime.finder import ModuleFinder

FAKE_ROOT = PurePosixPath('/fake-root')


class ScriptedFinder(ModuleFinder):
    """In-memory finder whose "files" run a scripted behaviour when loaded.

    A behaviour is None (loads cleanly), a callable (run on load, e.g. to
    declare a derivative) or an exception instance (raised on load).
    """

    def __init__(self) -> None:
        super().__init__(search_paths=[])
        self.files: Dict[str, object] = {}
        self.directories: set[str] = set()
        self.loads: List[str] = []
        self.patterns: List[str] = []

    def add(self, rel: str, behaviour: object = None) -> None:
        self.files[rel] = behaviour

    def add_directory(self, rel: str) -> None:
        self.directories.add(rel)

    def _rel(self, path) -> str:
        return PurePosixPath(path).relative_to(FAKE_ROOT).as_posix()

    def find_files(self, pattern: str) -> List[PurePosixPath]:
        self.patterns.append(pattern)
        depth = len(pattern.split('/'))
        names = sorted(set(self.files) | self.directories)
        return [
            FAKE_ROOT / rel
            for rel in names
            if len(rel.split('/')) == depth and fnmatch.fnmatchcase(rel, pattern)
        ]

    def is_regular_file(self, path) -> bool:
        return self._rel(path) in self.files

    def module_name(self, path) -> str:
        parts = self._rel(path)[:-len('.py')].split('/')
        if parts[-1] == '__init__':
            parts.pop()
        return '.'.join(parts)

    def load(self, path, module_name: str) -> types.ModuleType:
        rel = self._rel(path)
        self.loads.append(rel)
        behaviour = self.files[rel]
        if isinstance(behaviour, BaseException):
            raise behaviour
        if callable(behaviour):
            behaviour()
        return types.ModuleType(module_name)


def declares(base: type, name: str, into: Optional[list] = None) -> Callable[[], None]:
    """Behaviour that declares a derivative of *base* named *name* when loaded."""
    def _declare() -> None:
        cls = type(name, (base,), {})
        if into is not None:
            into.append(cls)
    return _declare


class PluginTree:
    """Writes throwaway plugin modules under a temporary directory."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def write(self, rel: str, source: str = '') -> Path:
        path = self.root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source))
        return path

    def finder(self) -> ModuleFinder:
        return ModuleFinder([self.root])
