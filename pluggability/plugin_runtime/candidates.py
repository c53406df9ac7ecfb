from __future__ import annotations

import glob
import logging
import posixpath
from typing import List, Sequence

from pluggability.utils.string_utils import uncamelcase

_log = logging.getLogger(__name__)


def make_require_path(module_name: str, subdir: str, kind: str) -> List[str]:
    """Make the module paths a derivative called *module_name* might live at.

    For kind ``DataDriver`` and subdir ``drivers``, ``Socket`` gives::

        ['drivers/socket_data_driver', 'drivers/socket']
    """
    kind_part = uncamelcase(kind).lower()
    mod = uncamelcase(module_name).lower()

    paths = [mod, f"{mod}_{kind_part}"]
    if subdir:
        paths = [posixpath.join(subdir, p) for p in paths]

    paths = list(dict.fromkeys(paths))
    paths.reverse()
    _log.debug("Path is: %r...", paths)
    return paths


def plugin_path_candidates(module_name: str, prefixes: Sequence[str], kind: str) -> List[str]:
    """Every module path *module_name* might map to, prefix by prefix."""
    prefixes = list(prefixes) or ['']
    candidates: List[str] = []
    for prefix in prefixes:
        candidates.extend(make_require_path(module_name, prefix, kind))
    return list(dict.fromkeys(candidates))


def candidate_files(candidate: str) -> List[str]:
    """File patterns for a module path: a plain module, then a package.

    Glob metacharacters in *candidate* are escaped, so ``'*'`` only ever
    matches a file literally called ``*.py``.
    """
    return _module_files(glob.escape(candidate))


def _module_files(pattern: str) -> List[str]:
    return [f"{pattern}.py", f"{pattern}/__init__.py"]


def load_all_patterns(prefixes: Sequence[str], kind: str) -> List[str]:
    """Glob patterns used to find every derivative module.

    With prefixes each prefix directory is searched; without, only modules
    named after the kind (``*_service.py``) are picked up.
    """
    patterns: List[str] = []
    if prefixes:
        _log.debug("Using plugin prefixes (%r) to build load patterns.", list(prefixes))
        for prefix in prefixes:
            base = prefix.rstrip('/')
            patterns += [f"{base}/*.py", f"{base}/*/__init__.py"] if base else ['*.py', '*/__init__.py']
    else:
        _log.debug("Using plugin type (%r) to build load patterns.", kind)
        # Drop the bare '*' form; it would match every module on the path.
        for path in make_require_path('*', '', kind)[:-1]:
            patterns += _module_files(path)
    return patterns
