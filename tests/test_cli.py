from pathlib import Path

import pytest

from scriptkit.cli import CliConfig, parse_args, usage
from scriptkit.config import settings
from scriptkit.errors import CliError


def test_defaults():
    config, leftover = parse_args([])

    assert leftover == []
    assert config == CliConfig()
    assert config.home == settings.HOME_DIR
    assert config.default_predef is True
    assert config.verbose_output is True
    assert config.remote_logging is True
    assert config.watch is False
    assert config.welcome_banner == settings.welcome_banner


def test_options_stop_at_script_path():
    config, leftover = parse_args(["-w", "-s", "script.py", "--n", "3", "-w"])

    assert config.watch is True
    assert config.verbose_output is False
    assert leftover == ["script.py", "--n", "3", "-w"]


def test_all_options(tmp_path):
    config, leftover = parse_args([
        "-p", "x = 1",
        "-f", str(tmp_path / "p.py"),
        "--no-default-predef",
        "-h", str(tmp_path),
        "--repl-api",
        "--banner", "hi",
        "--no-remote-logging",
    ])

    assert leftover == []
    assert config.predef == "x = 1"
    assert config.predef_file == tmp_path / "p.py"
    assert config.default_predef is False
    assert config.home == tmp_path
    assert config.repl_api is True
    assert config.welcome_banner == "hi"
    assert config.remote_logging is False


def test_equals_form():
    config, leftover = parse_args(["--predef=y = 2", "--code=print(y)"])

    assert config.predef == "y = 2"
    assert config.code == "print(y)"
    assert leftover == []


def test_home_is_not_help():
    config, _ = parse_args(["-h", "/tmp/scriptkit-home"])

    assert config.home == Path("/tmp/scriptkit-home")
    assert config.help is False
    assert parse_args(["--help"])[0].help is True


def test_unknown_option_is_left_over():
    config, leftover = parse_args(["-s", "--bogus", "x"])

    assert config.verbose_output is False
    assert leftover == ["--bogus", "x"]


def test_missing_option_value_raises():
    with pytest.raises(CliError, match="expected one argument"):
        parse_args(["-c"])


def test_usage_lists_options():
    text = usage()
    for option in ("--code", "--predef", "--predef-file", "--no-default-predef",
                   "--home", "--watch", "--silent", "--no-remote-logging"):
        assert option in text
