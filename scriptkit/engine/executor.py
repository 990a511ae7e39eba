"""ScriptKit - Python Code Executor

Executes Python code in-process with:
- Layered predef code run once, before the first execution
- Persistent namespace across load_code() calls (REPL-style continuity)
- Script files run in a fresh namespace seeded from the predef bindings
- Output redirected to the configured streams
- Every execution mapped to exactly one Outcome
- A record of every file a run consulted, for watch mode

Design: code is compiled and exec'd against a plain globals dict. Predef
layers populate that dict; scripts get a copy of it, so bindings a script
creates never leak into the next run.

Script bodies run inside __script_entry__ so tracebacks can be cut down to
the frames that belong to the script (see scriptkit.reporter).
"""

import ast
import sys
import types
import importlib.abc
import importlib.machinery
import logging
import builtins
import traceback
from pathlib import Path
from contextlib import contextmanager, redirect_stdout, redirect_stderr
from typing import Any, Callable, Dict, List, Optional, TextIO

from scriptkit.errors import CodeLoadError
from scriptkit.models import (
    NO_VALUE,
    ExceptionRaised,
    Failure,
    Outcome,
    PredefLayer,
    Skipped,
    Success,
    WatchedFile,
    mtime_if_exists,
)
from scriptkit.engine.predef import split_blocks
from scriptkit.engine.scripts import dispatch_entrypoint, flatten_args, main as main_decorator
from scriptkit.engine.storage import Storage

logger = logging.getLogger(__name__)

SCRIPT_ENTRY_MARKER = "__script_entry__"

_UNSET = object()


def __script_entry__(code, namespace: Dict[str, Any], dispatch: Callable[[Dict[str, Any]], Outcome]) -> Outcome:
    exec(code, namespace)
    return dispatch(namespace)


class SiblingFinder(importlib.abc.MetaPathFinder):
    """Finds modules in a script's own directory, watching each file as it is found.

    Only top-level modules in ``directory`` and submodules of packages found
    there are handled; anything else (installed packages, a virtualenv that
    happens to live under the script directory) falls through to the regular
    import system untouched.
    """

    def __init__(self, directory: str, watch: Callable[..., None]):
        self.directory = directory
        self.watch = watch
        self.loaded: List[str] = []
        self._packages = set()

    def find_spec(self, fullname, path=None, target=None):
        parent = fullname.rpartition('.')[0]
        if parent:
            if parent not in self._packages:
                return None
            search = path
        else:
            search = [self.directory]

        spec = importlib.machinery.PathFinder.find_spec(fullname, search)
        if spec is None:
            return None
        if spec.submodule_search_locations is not None:
            self._packages.add(fullname)
        if spec.has_location and spec.origin:
            origin = Path(spec.origin)
            # mtime as seen before the loader reads the source
            self.watch(origin, mtime_if_exists(origin))
        self.loaded.append(fullname)
        return spec

    def install(self) -> None:
        """Insert ahead of the path-based finder, behind builtins and frozen modules."""
        for i, finder in enumerate(sys.meta_path):
            if finder is importlib.machinery.PathFinder:
                sys.meta_path.insert(i, self)
                return
        sys.meta_path.append(self)

    def uninstall(self) -> None:
        """Remove the finder and evict what it found so the next run imports it again."""
        try:
            sys.meta_path.remove(self)
        except ValueError:
            pass
        for name in self.loaded:
            sys.modules.pop(name, None)
        logger.debug(f"Released sibling modules {self.loaded}")


class InterpApi:
    """The `interp` binding available to all executed code."""

    def __init__(self, interpreter: "Interpreter"):
        self._interpreter = interpreter

    def watch(self, path) -> None:
        """Re-run the script in watch mode when ``path`` changes."""
        self._interpreter.watch(path)

    def load(self, code: str) -> Any:
        """Run ``code`` in the interpreter namespace and return its value."""
        outcome = self._interpreter.load_code(code)
        if isinstance(outcome, ExceptionRaised):
            raise outcome.exception
        if isinstance(outcome, Failure):
            raise CodeLoadError(outcome.message)
        if isinstance(outcome, Success) and outcome.value is not NO_VALUE:
            return outcome.value
        return None

    def load_file(self, path) -> types.ModuleType:
        """Execute a Python file as a module seeded with the predef bindings.

        The file is watched, so editing it re-runs the script in watch mode.
        """
        resolved = self._interpreter.resolve(path)
        mtime = mtime_if_exists(resolved)
        source = resolved.read_bytes()
        self._interpreter.watch(resolved, mtime)

        module = types.ModuleType(resolved.stem)
        module.__dict__.update(self._interpreter.bindings())
        module.__file__ = str(resolved)
        module.__name__ = resolved.stem
        exec(compile(source, str(resolved), 'exec'), module.__dict__)
        return module


class Interpreter:
    """Executes predef, snippets and script files against one namespace.

    Construction does no work; predef runs on the first load_code() or
    run_script_file() call.

    Args:
        output_stream: Where executed code's stdout goes
        info_stream: Progress lines such as "Compiling <path>"
        error_stream: Where executed code's stderr goes
        storage: Source of the user predef file
        predefs: Ordered predef layers
        extra_bindings: Called with the interpreter, returns extra names to
            bind before predef runs
        wd: Directory relative paths resolve against
        verbose: Print progress lines to info_stream
    """

    def __init__(
        self,
        output_stream: TextIO,
        info_stream: TextIO,
        error_stream: TextIO,
        storage: Storage,
        predefs: List[PredefLayer],
        extra_bindings: Optional[Callable[["Interpreter"], Dict[str, Any]]] = None,
        wd: Optional[Path] = None,
        verbose: bool = True,
    ):
        self.output_stream = output_stream
        self.info_stream = info_stream
        self.error_stream = error_stream
        self.storage = storage
        self.predefs = list(predefs)
        self.extra_bindings = extra_bindings
        self.wd = Path(wd) if wd is not None else Path.cwd()
        self.verbose = verbose

        self.exit_code: Optional[int] = None
        self._namespace: Optional[Dict[str, Any]] = None
        self._init_outcome: Optional[Outcome] = None
        self._watched: Dict[Path, Optional[int]] = {}

    # ================================================================
    # Namespace and predef
    # ================================================================

    @property
    def namespace(self) -> Dict[str, Any]:
        self.initialize()
        return self._namespace

    def bindings(self) -> Dict[str, Any]:
        """Public names of the interpreter namespace."""
        return {k: v for k, v in self.namespace.items() if not k.startswith('__')}

    def initialize(self) -> Optional[Outcome]:
        """Build the namespace and run predef once.

        Returns the failing Outcome if a predef layer failed, else None.
        """
        if self._namespace is not None:
            return self._init_outcome

        self._namespace = {
            '__name__': '__main__',
            '__builtins__': builtins,
            'interp': InterpApi(self),
            'main': main_decorator,
        }
        if self.extra_bindings is not None:
            self._namespace.update(self.extra_bindings(self))

        for layer in self.predefs:
            outcome = self._run_predef(layer.code, f"<{layer.name}>")
            if outcome is not None:
                self._init_outcome = outcome
                return outcome

        predef_path = self.storage.predef_path
        predef_mtime = mtime_if_exists(predef_path) if predef_path is not None else None
        try:
            code, source_path = self.storage.load_predef()
        except (OSError, ValueError, SyntaxError) as e:
            logger.warning(f"Could not read predef file {predef_path}: {e}")
            self._init_outcome = Failure(f"Could not read predef file {predef_path}: {e}", e)
            return self._init_outcome
        if source_path is not None:
            if source_path == predef_path:
                self.watch(source_path, predef_mtime)
            else:
                self.watch(source_path)
        outcome = self._run_predef(code, str(source_path) if source_path else "<storagePredef>")
        if outcome is not None:
            self._init_outcome = outcome
            return outcome

        logger.debug(f"Predef loaded: {len(self.bindings())} bindings")
        return None

    def _run_predef(self, code: str, filename: str) -> Optional[Outcome]:
        for block in split_blocks(code):
            outcome = self._execute(block, filename, self._namespace, capture_value=False)
            if isinstance(outcome, (Failure, ExceptionRaised)):
                logger.warning(f"Predef {filename} failed: {outcome}")
                return outcome
        return None

    # ================================================================
    # Execution
    # ================================================================

    @contextmanager
    def _redirected(self):
        with redirect_stdout(self.output_stream), redirect_stderr(self.error_stream):
            yield

    def _exit_outcome(self, exc: SystemExit) -> Outcome:
        code = exc.code
        self.exit_code = code if isinstance(code, int) else (0 if code is None else 1)
        if code is None or code == 0:
            return Success(NO_VALUE)
        if isinstance(code, int):
            return Failure(f"Exited with code {code}", exc)
        return Failure(str(code), exc)

    @staticmethod
    def _syntax_failure(exc: SyntaxError) -> Failure:
        message = "".join(traceback.format_exception_only(type(exc), exc)).rstrip()
        return Failure(message, exc)

    def _execute(self, source: str, filename: str, namespace: Dict[str, Any], capture_value: bool = True) -> Outcome:
        try:
            tree = ast.parse(source, filename=filename, mode='exec')
            if not tree.body:
                return Skipped()
            last_expr = None
            if capture_value and isinstance(tree.body[-1], ast.Expr):
                last_expr = compile(ast.Expression(tree.body.pop().value), filename, 'eval')
            body = compile(tree, filename, 'exec')
        except SyntaxError as e:
            return self._syntax_failure(e)

        try:
            with self._redirected():
                exec(body, namespace)
                value = eval(last_expr, namespace) if last_expr is not None else None
        except SystemExit as e:
            return self._exit_outcome(e)
        except Exception as e:
            logger.info(f"Execution of {filename} raised {type(e).__name__}: {e}")
            return ExceptionRaised(e)

        if value is None:
            return Success(NO_VALUE)
        return Success(value)

    def load_code(self, code: str) -> Outcome:
        """Run a snippet in the persistent namespace.

        The value of a trailing expression becomes the Success value.
        """
        failed = self.initialize()
        if failed is not None:
            return failed
        return self._execute(code, "<console>", self._namespace)

    def run_script_file(
        self,
        path,
        args: Optional[List[str]] = None,
        kwargs: Optional[Dict[str, Optional[str]]] = None,
    ) -> Outcome:
        """Run a script file with its arguments bound.

        The script sees sys.argv as [path, *args], can import modules sitting
        next to it, and may define @main entrypoints that receive the
        arguments.
        """
        args = list(args or [])
        kwargs = dict(kwargs or {})
        path = self.resolve(path)

        # Watch first so a missing script is re-run once it appears
        mtime = mtime_if_exists(path)
        self.watch(path, mtime)

        failed = self.initialize()
        if failed is not None:
            return failed

        try:
            source = path.read_bytes()
        except FileNotFoundError:
            return Failure(f"Script file not found: {path}")
        except OSError as e:
            return Failure(f"Could not read script file {path}: {e}", e)

        if self.verbose:
            print(f"Compiling {path}", file=self.info_stream)

        filename = str(path)
        if not source.strip() and not args and not kwargs:
            return Skipped()

        try:
            # Compiling bytes honors a PEP 263 coding cookie
            code = compile(source, filename, 'exec')
        except SyntaxError as e:
            return self._syntax_failure(e)
        except ValueError as e:
            return Failure(f"Could not compile {path}: {e}", e)

        namespace = dict(self._namespace)
        namespace['__name__'] = '__main__'
        namespace['__file__'] = filename

        script_dir = str(path.parent)
        saved_argv = sys.argv
        sys.argv = [filename] + flatten_args(args, kwargs)
        sys.path.insert(0, script_dir)
        finder = SiblingFinder(script_dir, self.watch)
        finder.install()

        logger.info(f"Running script {filename} args={args} kwargs={kwargs}")
        try:
            with self._redirected():
                return __script_entry__(
                    code,
                    namespace,
                    lambda ns: dispatch_entrypoint(ns, filename, args, kwargs),
                )
        except SystemExit as e:
            return self._exit_outcome(e)
        except Exception as e:
            logger.info(f"Script {filename} raised {type(e).__name__}: {e}")
            return ExceptionRaised(e)
        finally:
            sys.argv = saved_argv
            try:
                sys.path.remove(script_dir)
            except ValueError:
                pass
            finder.uninstall()

    # ================================================================
    # Watched files
    # ================================================================

    def resolve(self, path) -> Path:
        path = Path(path)
        if not path.is_absolute():
            path = self.wd / path
        return path

    def watch(self, path, mtime=_UNSET) -> None:
        """Record ``path`` as consulted. The first recording wins."""
        path = self.resolve(path)
        if path in self._watched:
            return
        self._watched[path] = mtime_if_exists(path) if mtime is _UNSET else mtime

    def watched_files(self) -> List[WatchedFile]:
        return [WatchedFile(path, mtime) for path, mtime in self._watched.items()]
