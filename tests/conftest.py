import importlib
import sys
from pathlib import Path

import pytest

from pluggability import Pluggable
from tests.helpers import PluginTree, ScriptedFinder


@pytest.fixture
def finder():
    return ScriptedFinder()


@pytest.fixture
def plugin_base(finder):
    """A fresh root class wired to a scripted finder."""

    class Plugin(Pluggable, prefixes=['plugins', 'plugins/private'], finder=finder):
        pass

    return Plugin


@pytest.fixture
def plugin_tree(tmp_path, monkeypatch):
    """On-disk plugin tree importable for the duration of one test."""
    monkeypatch.syspath_prepend(str(tmp_path))
    tree = PluginTree(tmp_path)
    yield tree

    root = tmp_path.resolve()
    for name, module in list(sys.modules.items()):
        filename = getattr(module, '__file__', None)
        if filename and Path(filename).resolve().is_relative_to(root):
            del sys.modules[name]
    importlib.invalidate_caches()
