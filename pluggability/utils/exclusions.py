"""Exclusion rules that stop matching plugin paths from being loaded.

Typical use is keeping test or draft modules out of a plugin directory::

    Service.plugin_exclusions('**/tests/**', re.compile(r'_draft\\.py$'))
"""

from __future__ import annotations

import fnmatch
import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Iterable, Union

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlobRule:
    # fnmatch's ``*`` also matches ``/``, so ``**`` spans any number of directories.
    pattern: str

    def matches(self, path: str) -> bool:
        return fnmatch.fnmatchcase(path, self.pattern)


@dataclass(frozen=True)
class RegexRule:
    pattern: re.Pattern

    def matches(self, path: str) -> bool:
        return self.pattern.search(path) is not None


ExclusionRule = Union[GlobRule, RegexRule]


def coerce_rule(rule: Any) -> Any:
    """Wrap plain strings and compiled patterns; anything else is kept as given."""
    if isinstance(rule, (GlobRule, RegexRule)):
        return rule
    if isinstance(rule, str):
        return GlobRule(rule)
    if isinstance(rule, re.Pattern):
        return RegexRule(rule)
    return rule


def is_excluded_path(path: str | os.PathLike, rules: Iterable[Any]) -> bool:
    """Return True if any of *rules* matches *path*."""
    text = os.fspath(path).replace(os.sep, '/')
    for rule in rules:
        if isinstance(rule, (GlobRule, RegexRule)):
            if rule.matches(text):
                _log.debug("load path %r is excluded by %r", text, rule)
                return True
        else:
            _log.warning("Don't know how to apply exclusion: %r", rule)
    return False
