from __future__ import annotations

import re
from typing import List

_CAMEL_BOUNDARY = re.compile(r'([a-z0-9])([A-Z])')
_NAMESPACE = re.compile(r'\A.*(?:\.|::)')
_LEADING_WORD = re.compile(r'\A(\w+).*', re.DOTALL)
_TRAILING_NON_WORD = re.compile(r'\W+\Z')


def uncamelcase(value: str) -> str:
    """Insert ``_`` at lower/digit -> upper boundaries: ``BlackSheep`` -> ``Black_Sheep``."""
    return _CAMEL_BOUNDARY.sub(r'\1_\2', value)


def simple_name(name: str) -> str:
    """Strip namespace qualifiers and anything after the leading word.

    ``Outer::FooService`` -> ``FooService``, ``pkg.mod.Foo[int]`` -> ``Foo``.
    Returns an empty string for names with no leading word character.
    """
    name = _NAMESPACE.sub('', name)
    return _LEADING_WORD.sub(r'\1', name) if _LEADING_WORD.match(name) else ''


def _strip_kind(name: str, kind: str) -> str:
    if kind and len(name) >= len(kind) and name.lower().endswith(kind.lower()):
        return name[:-len(kind)]
    return _TRAILING_NON_WORD.sub('', name)


def derivative_names(class_name: str, kind: str) -> List[str]:
    """Return every string key a derivative called *class_name* is registered under.

    Order matters: the last entry becomes the class's ``plugin_name``.
    """
    simple = simple_name(class_name)
    if not simple:
        return []

    keys = [simple, simple.lower(), uncamelcase(simple).lower()]

    simpler = _strip_kind(simple, kind)
    if simpler:
        keys += [simpler, simpler.lower(), uncamelcase(simpler).lower()]

    return list(dict.fromkeys(keys))


def module_name_for(class_name: str, kind: str) -> str:
    """Return the unique part of *class_name* used to build module paths.

    ``My.FooService`` -> ``Foo`` for kind ``Service``; names that don't carry
    the kind suffix are returned unchanged.
    """
    if kind and re.search(rf'\w{re.escape(kind)}\Z', class_name):
        return simple_name(class_name)[:-len(kind)]
    return class_name
