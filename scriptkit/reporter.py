"""ScriptKit - Result Reporting

Maps every Outcome to what the user sees and whether the run succeeded:

    Failure          -> message on the error stream        -> False
    ExceptionRaised  -> truncated traceback on error stream -> False
    Success(value)   -> pretty-printed value on output      -> True
    Success(NO_VALUE), Skipped -> nothing                   -> True

Tracebacks are cut so they start at the script entry frame: the frames of
ScriptKit itself that led into the script are dropped.
"""

import pprint
import traceback
from typing import NamedTuple, Optional, TextIO

from scriptkit.engine.executor import SCRIPT_ENTRY_MARKER
from scriptkit.models import NO_VALUE, ExceptionRaised, Failure, Outcome, Skipped, Success

OUTPUT = "output"
ERROR = "error"


class Report(NamedTuple):
    text: str
    stream: Optional[str]  # OUTPUT, ERROR or None when nothing is printed
    success: bool


def truncate_traceback(tb, marker: str = SCRIPT_ENTRY_MARKER):
    """First traceback entry running ``marker``, or None if there is none."""
    while tb is not None:
        if tb.tb_frame.f_code.co_name == marker:
            return tb
        tb = tb.tb_next
    return None


def format_exception(exc: BaseException) -> str:
    tb = exc.__traceback__
    truncated = truncate_traceback(tb)
    if truncated is not None:
        tb = truncated
    return "".join(traceback.format_exception(type(exc), exc, tb))


def render_outcome(outcome: Outcome) -> Report:
    if isinstance(outcome, Failure):
        return Report(outcome.message, ERROR, False)

    if isinstance(outcome, ExceptionRaised):
        return Report(format_exception(outcome.exception).rstrip("\n"), ERROR, False)

    if isinstance(outcome, Success):
        if outcome.value is NO_VALUE:
            return Report("", None, True)
        return Report(pprint.pformat(outcome.value), OUTPUT, True)

    if isinstance(outcome, Skipped):
        return Report("", None, True)

    raise TypeError(f"Not an Outcome: {outcome!r}")


def report_outcome(outcome: Outcome, output_stream: TextIO, error_stream: TextIO) -> bool:
    """Print ``outcome`` and return whether it counts as success."""
    report = render_outcome(outcome)
    if report.stream == OUTPUT:
        print(report.text, file=output_stream)
    elif report.stream == ERROR:
        print(report.text, file=error_stream)
    return report.success
