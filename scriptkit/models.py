"""ScriptKit - Data Models

Value types passed between the engine and the entry points:
- Outcome variants (Failure, ExceptionRaised, Success, Skipped)
- PredefLayer: one named block of code run before user code
- ScriptInvocation: a script path plus the arguments it was called with
- WatchedFile: a file a run consulted, with the mtime seen when it was read
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, NamedTuple, Optional, Tuple, Union


# ============================================================
# Outcome
# ============================================================

class _NoValue:
    """Sentinel for code that ran successfully but produced no value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_VALUE"

    def __bool__(self) -> bool:
        return False


NO_VALUE = _NoValue()


@dataclass(frozen=True)
class Failure:
    """Explicit failure with a user-facing message."""
    message: str
    cause: Optional[BaseException] = None


@dataclass(frozen=True)
class ExceptionRaised:
    """Executed code raised an exception it did not handle."""
    exception: BaseException


@dataclass(frozen=True)
class Success:
    value: Any = NO_VALUE


@dataclass(frozen=True)
class Skipped:
    """Nothing to run (empty code); counts as success."""


Outcome = Union[Failure, ExceptionRaised, Success, Skipped]


# ============================================================
# Predef, invocations, watched files
# ============================================================

@dataclass(frozen=True)
class PredefLayer:
    name: str
    code: str
    # False: recompiled on every run
    cacheable: bool = False


@dataclass(frozen=True)
class ScriptInvocation:
    path: Path
    args: Tuple[str, ...] = ()
    # flag name -> payload; None means the flag was given without a value
    kwargs: Dict[str, Optional[str]] = field(default_factory=dict)
    repl_api: bool = False


class WatchedFile(NamedTuple):
    path: Path
    mtime: Optional[int]


def mtime_if_exists(path: Path) -> Optional[int]:
    """Modification time in nanoseconds, or None if the file cannot be stat'd."""
    try:
        return Path(path).stat().st_mtime_ns
    except OSError:
        return None
