"""ScriptKit - Command Line Parsing

Options are read up to the first argument that is not a ScriptKit option
(normally the script path); everything from there on belongs to the script.
"""

import argparse
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from scriptkit.config import settings
from scriptkit.errors import CliError


class CliConfig(BaseModel):
    code: Optional[str] = Field(default=None, description="Code to run instead of a script")
    predef: str = Field(default="", description="Extra predef code")
    predef_file: Optional[Path] = Field(default=None, description="Predef file overriding the home folder one")
    default_predef: bool = Field(default=True, description="Run the builtin default predef")
    home: Path = Field(default_factory=lambda: settings.HOME_DIR, description="Storage folder")
    watch: bool = Field(default=False, description="Re-run the script when watched files change")
    verbose_output: bool = Field(default=True, description="Print progress messages")
    repl_api: bool = Field(default=False, description="Bind `repl` in scripts and -c code")
    welcome_banner: Optional[str] = Field(default_factory=lambda: settings.welcome_banner)
    remote_logging: bool = Field(default=True, description="Post usage events")
    help: bool = Field(default=False, description="Print usage and exit")


class _Parser(argparse.ArgumentParser):
    def error(self, message):
        raise CliError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="scriptkit",
        description="Run Python scripts, one-off snippets, or an interactive REPL.",
        add_help=False,
    )
    parser.add_argument("-c", "--code", help="run CODE and exit")
    parser.add_argument("-p", "--predef", default="", help="extra predef code")
    parser.add_argument("-f", "--predef-file", type=Path, help="predef file (a missing file means no predef)")
    parser.add_argument("--no-default-predef", dest="default_predef", action="store_false",
                        help="skip the builtin default predef")
    parser.add_argument("-h", "--home", type=Path, default=None, help="storage folder")
    parser.add_argument("-w", "--watch", action="store_true",
                        help="re-run the script whenever a file it used changes")
    parser.add_argument("-s", "--silent", dest="verbose_output", action="store_false",
                        help="suppress progress messages")
    parser.add_argument("--repl-api", action="store_true", help="bind `repl` in scripts and -c code")
    parser.add_argument("--banner", dest="welcome_banner", default=None, help="REPL welcome banner")
    parser.add_argument("--no-remote-logging", dest="remote_logging", action="store_false",
                        help="do not post usage events")
    parser.add_argument("--help", action="store_true", help="show this message and exit")
    return parser


def usage() -> str:
    return build_parser().format_help()


def _split_point(parser: argparse.ArgumentParser, args: List[str]) -> int:
    """Index of the first argument that is not a ScriptKit option or its value."""
    i = 0
    while i < len(args):
        token = args[i]
        if not token.startswith("-"):
            return i
        name, has_value, _ = token.partition("=")
        action = parser._option_string_actions.get(name)
        if action is None:
            return i
        i += 1 if (action.nargs == 0 or has_value) else 2
    return len(args)


def parse_args(args: List[str]) -> Tuple[CliConfig, List[str]]:
    """Parse ScriptKit options; returns the config and the leftover arguments.

    The first leftover argument is the script path, or an unknown option.

    Raises:
        CliError: the options could not be parsed
    """
    parser = build_parser()
    split = _split_point(parser, args)
    namespace = parser.parse_args(args[:split])
    values = {k: v for k, v in vars(namespace).items() if v is not None}
    return CliConfig(**values), list(args[split:])
