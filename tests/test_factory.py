"""Resolution and construction through ``Pluggable.create`` / ``get_subclass``."""

import traceback
from concurrent.futures import ThreadPoolExecutor

import pytest

import pluggability.base
from pluggability import (
    LoadSucceededButNotRegisteredError,
    NotADescendantError,
    PluginError,
    PluginNotFoundError,
)
from tests.helpers import declares


def test_returns_derivatives_directly_if_already_loaded(plugin_base, finder):
    class AlreadyLoadedPlugin(plugin_base):
        pass

    assert isinstance(plugin_base.create('alreadyloaded'), AlreadyLoadedPlugin)
    assert isinstance(plugin_base.create('AlreadyLoaded'), AlreadyLoadedPlugin)
    assert isinstance(plugin_base.create('AlreadyLoadedPlugin'), AlreadyLoadedPlugin)
    assert isinstance(plugin_base.create('already_loaded'), AlreadyLoadedPlugin)
    assert isinstance(plugin_base.create(AlreadyLoadedPlugin), AlreadyLoadedPlugin)
    assert finder.patterns == []
    assert finder.loads == []


def test_black_sheep_is_creatable_by_full_name(plugin_base):
    class BlackSheep(plugin_base):
        pass

    assert isinstance(plugin_base.create('blacksheep'), BlackSheep)
    assert isinstance(plugin_base.create('BlackSheep'), BlackSheep)
    assert isinstance(plugin_base.create('black_sheep'), BlackSheep)


def test_create_forwards_arguments(plugin_base):
    class EchoPlugin(plugin_base):
        def __init__(self, *args, **kwargs):
            self.args = args
            self.kwargs = kwargs

    obj = plugin_base.create('echo', 1, 2, mode='loud')
    assert obj.args == (1, 2)
    assert obj.kwargs == {'mode': 'loud'}


def test_own_name_and_empty_string_return_the_receiver(plugin_base):
    assert plugin_base.get_subclass('Plugin') is plugin_base
    assert plugin_base.get_subclass('') is plugin_base
    assert plugin_base.get_subclass(plugin_base) is plugin_base
    assert isinstance(plugin_base.create(''), plugin_base)


def test_refuses_classes_outside_the_hierarchy(plugin_base, finder):
    class Doppelgaenger:
        pass

    with pytest.raises(NotADescendantError, match='is not a descendent of'):
        plugin_base.create(Doppelgaenger)
    with pytest.raises(TypeError):
        plugin_base.get_subclass(Doppelgaenger)
    assert finder.loads == []


def test_derivative_receiver_only_resolves_its_own_descendants(plugin_base):
    class FooPlugin(plugin_base):
        pass

    class BarPlugin(plugin_base):
        pass

    class FooBarPlugin(FooPlugin):
        pass

    assert FooPlugin.get_subclass('foo_bar') is FooBarPlugin
    with pytest.raises(NotADescendantError):
        FooPlugin.get_subclass('bar')


def test_constructor_errors_point_at_the_constructor(plugin_base):
    class PugilistPlugin(plugin_base):
        def __init__(self):
            raise RuntimeError('Oh noes -- an error!')

    with pytest.raises(RuntimeError, match='Oh noes') as excinfo:
        plugin_base.create('pugilist')

    err = excinfo.value
    assert type(err) is RuntimeError
    assert "When creating 'pugilist'" in err.__notes__

    frames = traceback.extract_tb(err.__traceback__)
    assert frames[-1].name == '__init__'
    assert frames[-1].filename == __file__
    internal = [f for f in frames if f.filename == pluggability.base.__file__]
    assert len(internal) == 1
    assert 'get_subclass' not in [f.name for f in frames]


def test_constructor_error_type_is_preserved(plugin_base):
    class StrictPlugin(plugin_base):
        def __init__(self, value):
            raise ValueError(f'bad value {value!r}')

    with pytest.raises(ValueError, match='bad value 3'):
        plugin_base.create('strict', 3)


def test_loads_new_plugins_if_not_loaded_yet(plugin_base, finder):
    loaded = []
    finder.add('plugins/dazzle_plugin.py', declares(plugin_base, 'DazzlePlugin', loaded))

    obj = plugin_base.create('dazzle')

    assert isinstance(obj, loaded[0])
    assert finder.loads == ['plugins/dazzle_plugin.py']


def test_registry_hit_after_first_load_skips_loading(plugin_base, finder):
    finder.add('plugins/dazzle_plugin.py', declares(plugin_base, 'DazzlePlugin'))

    first = plugin_base.create('dazzle')
    second = plugin_base.create('dazzle')

    assert first is not second
    assert type(first) is type(second)
    assert finder.loads == ['plugins/dazzle_plugin.py']


def test_full_class_name_is_reduced_to_module_name(plugin_base, finder):
    finder.add('plugins/private/glitter_plugin.py', declares(plugin_base, 'GlitterPlugin'))

    assert type(plugin_base.create('GlitterPlugin')).__name__ == 'GlitterPlugin'
    assert finder.loads == ['plugins/private/glitter_plugin.py']


def test_describes_what_it_tried_when_nothing_is_found(plugin_base):
    with pytest.raises(PluginNotFoundError) as excinfo:
        plugin_base.create('scintillating')

    err = excinfo.value
    assert "Couldn't find a Plugin named 'scintillating'" in str(err)
    assert err.tried == [
        'plugins/scintillating_plugin',
        'plugins/scintillating',
        'plugins/private/scintillating_plugin',
        'plugins/private/scintillating',
    ]
    for path in err.tried:
        assert path in str(err)
    assert isinstance(err, PluginError)
    assert isinstance(err, LookupError)


def test_load_that_registers_nothing_is_reported(plugin_base, finder):
    finder.add('plugins/corruscating_plugin.py')

    with pytest.raises(LoadSucceededButNotRegisteredError, match='succeeded') as excinfo:
        plugin_base.create('corruscating')

    err = excinfo.value
    assert err.path.endswith('plugins/corruscating_plugin.py')
    assert err.kind == 'Plugin'
    assert err.name == 'corruscating'
    assert not isinstance(err, PluginNotFoundError)


def test_concurrent_creates_against_a_populated_registry(plugin_base, finder):
    class SteadyPlugin(plugin_base):
        pass

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: plugin_base.create('steady'), range(200)))

    assert all(type(obj) is SteadyPlugin for obj in results)
    assert len({id(obj) for obj in results}) == 200
    assert finder.loads == []
