import click

from dynaflags.options import option_kwargs, param_name, to_click_option
from dynaflags.registry import FlagSpec


def test_param_name_replaces_dashes():
    assert param_name("no-color") == "no_color"
    assert param_name("cwd") == "cwd"


def test_option_with_alias():
    opt = to_click_option(FlagSpec("verbose", "v", {"is_flag": True, "help": "Chatty"}))

    assert opt.name == "verbose"
    assert set(opt.opts) == {"--verbose", "-v"}
    assert opt.is_flag
    assert opt.help == "Chatty"


def test_dashed_flag_name():
    opt = to_click_option(FlagSpec("no-color", metadata={"is_flag": True}))

    assert opt.name == "no_color"
    assert opt.opts == ["--no-color"]


def test_description_becomes_help():
    assert option_kwargs(FlagSpec("env", metadata={"description": "Env name"})) == {
        "help": "Env name"
    }


def test_choices_and_named_types():
    choice = to_click_option(FlagSpec("mode", metadata={"choices": ["a", "b"]}))
    number = to_click_option(FlagSpec("count", metadata={"type": "integer", "default": 3}))

    assert isinstance(choice.type, click.Choice)
    assert list(choice.type.choices) == ["a", "b"]
    assert number.type is click.INT
    assert number.default == 3


def test_unknown_metadata_is_ignored():
    kwargs = option_kwargs(FlagSpec("cwd", metadata={"default": ".", "renderer": "x"}))

    assert kwargs == {"default": "."}
