"""ScriptKit - Entry Points

Main wraps one ExecutionEnvironment and offers the three ways to run code:
- run(): interactive REPL, with the remote logger scoped around it
- run_script(): one script file, returning its Outcome and watched files
- run_code(): one snippet

Note that instantiate_repl() and instantiate_interpreter() build a new
session/interpreter on every call; nothing is compiled until it runs.

The module-level main() does argument parsing and process exit; main0() holds
its logic without exiting so it can be tested in process.
"""

import sys
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO, Tuple

from scriptkit.cli import CliConfig, parse_args, usage
from scriptkit.config import settings
from scriptkit.environment import ExecutionEnvironment
from scriptkit.errors import CliError, ScriptArgumentError
from scriptkit.models import ExceptionRaised, Failure, Outcome, ScriptInvocation, Skipped, Success, WatchedFile
from scriptkit.engine.executor import Interpreter
from scriptkit.engine.predef import DEFAULT_PREDEF, REPL_PREDEF, build_predef_layers
from scriptkit.engine.repl import Repl, ReplApi
from scriptkit.engine.scripts import group_args
from scriptkit.engine.storage import FolderStorage
from scriptkit.remote_logger import remote_logging
from scriptkit.reporter import report_outcome
from scriptkit.watch import WatchLoop

logger = logging.getLogger(__name__)


# ================================================================
# Script runner
# ================================================================

def collect_watched(watched: List[WatchedFile]) -> List[WatchedFile]:
    """Keep the first occurrence of each path, in order."""
    seen = set()
    result = []
    for path, mtime in watched:
        if path in seen:
            continue
        seen.add(path)
        result.append(WatchedFile(path, mtime))
    return result


def run_script(interpreter, invocation: ScriptInvocation) -> Tuple[Outcome, List[WatchedFile]]:
    """Run ``invocation`` on ``interpreter``; never raises."""
    try:
        outcome = interpreter.run_script_file(
            invocation.path, list(invocation.args), dict(invocation.kwargs)
        )
    except Exception as e:
        logger.error(f"Executor raised while running {invocation.path}: {e}", exc_info=True)
        outcome = ExceptionRaised(e)

    try:
        watched = collect_watched(interpreter.watched_files())
    except Exception as e:
        logger.error(f"Could not read watched files for {invocation.path}: {e}", exc_info=True)
        watched = []
        if isinstance(outcome, (Success, Skipped)):
            outcome = Failure(f"Could not read watched files: {e}", e)

    return outcome, watched


# ================================================================
# Main
# ================================================================

class Main:
    """Entry points for one ExecutionEnvironment."""

    def __init__(self, env: Optional[ExecutionEnvironment] = None):
        self.env = env or ExecutionEnvironment()

    def instantiate_repl(self, repl_args: Optional[Dict[str, Any]] = None, remote_logger=None) -> Repl:
        env = self.env
        return Repl(
            env.input_stream,
            env.output_stream,
            env.info_stream,
            env.error_stream,
            storage=env.storage,
            predefs=build_predef_layers(env, REPL_PREDEF + DEFAULT_PREDEF),
            wd=env.wd,
            welcome_banner=env.welcome_banner,
            repl_args=repl_args,
            remote_logger=remote_logger,
        )

    def instantiate_interpreter(self, repl_api: bool = False) -> Interpreter:
        env = self.env

        def extra_bindings(interpreter: Interpreter) -> Dict[str, Any]:
            if not repl_api:
                return {}
            return {'repl': ReplApi(interpreter)}

        return Interpreter(
            env.output_stream,
            env.info_stream,
            env.error_stream,
            env.storage,
            build_predef_layers(env, DEFAULT_PREDEF),
            extra_bindings=extra_bindings,
            wd=env.wd,
            verbose=env.verbose_output,
        )

    def run(self, **repl_args) -> int:
        """Run an interactive session; returns its exit code."""
        with remote_logging(self.env.remote_logging, self.env.storage) as remote_logger:
            repl = self.instantiate_repl(repl_args, remote_logger)
            exit_code = repl.run()
            repl.before_exit(exit_code)
        return exit_code

    def run_script(
        self,
        path: Path,
        args: Optional[List[str]] = None,
        kwargs: Optional[Dict[str, Optional[str]]] = None,
        repl_api: bool = False,
    ) -> Tuple[Outcome, List[WatchedFile]]:
        """Run a script file with positional ``args`` and keyword ``kwargs``."""
        invocation = ScriptInvocation(Path(path), tuple(args or ()), dict(kwargs or {}), repl_api)
        interpreter = self.instantiate_interpreter(repl_api)
        return run_script(interpreter, invocation)

    def run_code(self, code: str, repl_api: bool = False) -> Outcome:
        return self.instantiate_interpreter(repl_api).load_code(code)


# ================================================================
# Command line
# ================================================================

def from_config(
    cli_config: CliConfig,
    is_repl: bool,
    stdin: TextIO,
    stdout: TextIO,
    stderr: TextIO,
) -> Main:
    storage = FolderStorage(cli_config.home, is_repl, predef_file=cli_config.predef_file)
    env = ExecutionEnvironment(
        predef=cli_config.predef,
        default_predef=cli_config.default_predef,
        storage=storage,
        welcome_banner=cli_config.welcome_banner,
        input_stream=stdin,
        output_stream=stdout,
        info_stream=stderr,
        error_stream=stderr,
        verbose_output=cli_config.verbose_output,
        remote_logging=cli_config.remote_logging,
    )
    return Main(env)


def run_script_and_print(
    script_main: Main,
    script_path: Path,
    args: List[str],
    kwargs: Dict[str, Optional[str]],
    repl_api: bool = False,
) -> Tuple[bool, List[WatchedFile]]:
    outcome, watched = script_main.run_script(script_path, args, kwargs, repl_api)
    env = script_main.env
    success = report_outcome(outcome, env.output_stream, env.error_stream)
    return success, watched


def run_script_cli(
    script_path: Path,
    script_args: List[str],
    cli_config: CliConfig,
    stdin: TextIO,
    stdout: TextIO,
    stderr: TextIO,
) -> bool:
    """Run a script from the command line, re-running it in watch mode.

    Raises:
        ScriptArgumentError: the script arguments could not be grouped
    """
    args, kwargs = group_args(script_args)

    def run_once() -> Tuple[bool, List[WatchedFile]]:
        script_main = from_config(cli_config, False, stdin, stdout, stderr)
        return run_script_and_print(script_main, script_path, args, kwargs, cli_config.repl_api)

    return WatchLoop(run_once, stderr).run(cli_config.watch)


def main0(
    args: List[str],
    stdin: TextIO,
    stdout: TextIO,
    stderr: TextIO,
) -> Tuple[bool, Optional[str]]:
    """Logic of main() without sys.exit.

    Returns (success, message); the message, if any, is for the caller to print.
    """
    try:
        cli_config, leftover = parse_args(args)
    except CliError as e:
        return False, f"{e}\nUse --help to list possible options"

    if cli_config.help:
        return True, usage()

    if cli_config.code is not None:
        if leftover:
            return False, "Cannot combine --code with a script\nUse --help to list possible options"
        code_main = from_config(cli_config, True, stdin, stdout, stderr)
        outcome = code_main.run_code(cli_config.code, cli_config.repl_api)
        return report_outcome(outcome, stdout, stderr), None

    if not leftover:
        print("Loading...", file=stdout)
        exit_code = from_config(cli_config, True, stdin, stdout, stderr).run()
        return exit_code == 0, None

    head, rest = leftover[0], leftover[1:]
    if head.startswith("-"):
        return False, f"Unknown option: {head}\nUse --help to list possible options"

    try:
        success = run_script_cli(Path(head).absolute(), rest, cli_config, stdin, stdout, stderr)
    except ScriptArgumentError as e:
        return False, f"{e}\nUse --help to list possible options"
    return success, None


def main(argv: Optional[List[str]] = None) -> None:
    """Command line entry point."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.WARNING),
        format='%(asctime)s | %(name)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    args = sys.argv[1:] if argv is None else argv
    success, message = main0(args, sys.stdin, sys.stdout, sys.stderr)
    if message is not None:
        print(message, file=sys.stdout if success else sys.stderr)
    sys.exit(0 if success else 1)
