"""ScriptKit - Interactive REPL

Interactive session built on code.InteractiveConsole:
- input read line by line from the configured input stream
- complete inputs run through the Interpreter, so the namespace persists
  and results are reported like any other Outcome
- history loaded from and saved to the storage backend
- `repl` binding for introspection (history, variables, session checkpoints)
"""

import code
import codeop
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from scriptkit.config import settings
from scriptkit.models import PredefLayer
from scriptkit.engine.executor import Interpreter
from scriptkit.engine.storage import Storage
from scriptkit.reporter import report_outcome

logger = logging.getLogger(__name__)


class SessionApi:
    """Named checkpoints of the interpreter namespace.

    save() snapshots the current bindings, load() restores a snapshot,
    pop() discards the most recent ones.
    """

    def __init__(self, interpreter: Interpreter):
        self._interpreter = interpreter
        self._frames: List[tuple] = []

    def save(self, name: str = "") -> None:
        snapshot = dict(self._interpreter.namespace)
        self._frames.append((name, snapshot))

    def load(self, name: str = "") -> None:
        for frame_name, snapshot in reversed(self._frames):
            if not name or frame_name == name:
                namespace = self._interpreter.namespace
                namespace.clear()
                namespace.update(snapshot)
                return
        raise KeyError(f"No saved session named {name!r}")

    def pop(self, num: int = 1) -> None:
        for _ in range(min(num, len(self._frames))):
            self._frames.pop()

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self._frames]


class ReplApi:
    """The `repl` binding: read-mostly view of the running session."""

    def __init__(
        self,
        interpreter: Interpreter,
        history: Optional[List[str]] = None,
        width: int = settings.REPL_WIDTH,
        height: int = settings.REPL_HEIGHT,
    ):
        self._interpreter = interpreter
        self.history = history if history is not None else []
        self.width = width
        self.height = height
        self.session = SessionApi(interpreter)

    def variables(self) -> Dict[str, str]:
        """User bindings with their type names."""
        return {
            name: type(value).__name__
            for name, value in self._interpreter.bindings().items()
            if name not in ('interp', 'repl', 'main')
        }


class Repl(code.InteractiveConsole):
    """Interactive session over the configured streams.

    The remote logger is only borrowed; whoever created it closes it.
    """

    PROMPT = ">>> "
    CONTINUATION_PROMPT = "... "

    def __init__(
        self,
        input_stream: TextIO,
        output_stream: TextIO,
        info_stream: TextIO,
        error_stream: TextIO,
        storage: Storage,
        predefs: List[PredefLayer],
        wd: Path,
        welcome_banner: Optional[str] = None,
        repl_args: Optional[Dict[str, Any]] = None,
        remote_logger=None,
    ):
        super().__init__()
        self.input_stream = input_stream
        self.output_stream = output_stream
        self.info_stream = info_stream
        self.error_stream = error_stream
        self.storage = storage
        self.welcome_banner = welcome_banner
        self.remote_logger = remote_logger
        self.history: List[str] = storage.load_history()
        self._repl_args = dict(repl_args or {})
        self._more = False

        self.interpreter = Interpreter(
            output_stream,
            info_stream,
            error_stream,
            storage,
            predefs,
            extra_bindings=self._bindings,
            wd=wd,
        )

    def _bindings(self, interpreter: Interpreter) -> Dict[str, Any]:
        bindings = {'repl': ReplApi(interpreter, self.history)}
        bindings.update(self._repl_args)
        return bindings

    # ================================================================
    # code.InteractiveConsole hooks
    # ================================================================

    def raw_input(self, prompt: str = "") -> str:
        self.output_stream.write(self.CONTINUATION_PROMPT if self._more else self.PROMPT)
        self.output_stream.flush()
        line = self.input_stream.readline()
        if not line:
            raise EOFError
        return line.rstrip("\n")

    def write(self, data: str) -> None:
        self.error_stream.write(data)

    def push(self, line, *args, **kwargs) -> bool:
        self._more = super().push(line, *args, **kwargs)
        return self._more

    def runsource(self, source: str, filename: str = "<input>", symbol: str = "single") -> bool:
        """Returns True while more input is needed to complete ``source``."""
        try:
            if codeop.compile_command(source, filename, symbol) is None:
                return True
        except (OverflowError, SyntaxError, ValueError):
            # Incomplete check failed; the interpreter reports the error
            pass

        if source.strip():
            self.history.append(source)

        outcome = self.interpreter.load_code(source)
        report_outcome(outcome, self.output_stream, self.error_stream)

        if self.interpreter.exit_code is not None:
            raise SystemExit(self.interpreter.exit_code)
        return False

    # ================================================================
    # Session contract
    # ================================================================

    def run(self) -> int:
        """Read and run inputs until EOF or exit(); returns the exit code."""
        logger.info("REPL session starting")
        if self.welcome_banner:
            self.info_stream.write(f"{self.welcome_banner}\n")

        failed = self.interpreter.initialize()
        if failed is not None:
            report_outcome(failed, self.output_stream, self.error_stream)

        try:
            self.interact(banner="", exitmsg="")
        except SystemExit as e:
            return e.code if isinstance(e.code, int) else 0
        return 0

    def before_exit(self, exit_code: int) -> None:
        self.storage.save_history(self.history)
        if self.remote_logger is not None:
            self.remote_logger.apply("Exit")
        logger.info(f"REPL session ended with exit code {exit_code}")
