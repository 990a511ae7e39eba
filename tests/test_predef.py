import pytest

from scriptkit.engine.predef import (
    DEFAULT_PREDEF,
    REPL_PREDEF,
    build_predef_layers,
    compose_default_predef,
    split_blocks,
)
from scriptkit.models import PredefLayer


@pytest.mark.parametrize("enabled", [True, False])
def test_compose_default_predef_is_all_or_nothing(enabled):
    builtin = "import os\nimport sys\n"
    composed = compose_default_predef(enabled, builtin)
    assert composed == (builtin if enabled else "")


def test_compose_default_predef_keeps_text_verbatim():
    assert compose_default_predef(True, REPL_PREDEF + DEFAULT_PREDEF) == REPL_PREDEF + DEFAULT_PREDEF


@pytest.mark.parametrize("default_predef", [True, False])
@pytest.mark.parametrize("predef", ["", "x = 1"])
def test_build_predef_layers_orders_default_before_user(make_env, default_predef, predef):
    env = make_env(predef=predef, default_predef=default_predef)

    layers = build_predef_layers(env, "import os\n")

    assert [layer.name for layer in layers] == ["defaultPredef", "predef"]
    assert layers[0].code == ("import os\n" if default_predef else "")
    assert layers[1].code == predef
    assert not any(layer.cacheable for layer in layers)


def test_build_predef_layers_uses_default_builtin_text(make_env):
    layers = build_predef_layers(make_env())
    assert layers[0] == PredefLayer("defaultPredef", DEFAULT_PREDEF, False)


def test_split_blocks_on_at_lines():
    code = "a = 1\n@\nb = a + 1\n  @  \nc = b + 1\n"
    assert split_blocks(code) == ["a = 1\n", "b = a + 1\n", "c = b + 1\n"]


def test_split_blocks_drops_blank_blocks():
    assert split_blocks("") == []
    assert split_blocks("@\n\n@\nx = 1") == ["x = 1"]


def test_decorator_lines_are_not_separators():
    code = "@functools.lru_cache\ndef f():\n    return 1\n"
    assert split_blocks(code) == [code]
