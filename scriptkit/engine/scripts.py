"""ScriptKit - Script Arguments and Entrypoints

Scripts receive arguments two ways:
- sys.argv holds the script path and the raw arguments, as for `python script.py`
- functions decorated with @main are called with the arguments bound to their
  parameters, and the return value becomes the run's result

Argument grouping: `--name value` is a keyword argument, `--name` followed by
another flag (or nothing) is a keyword without a value, everything else is
positional.
"""

import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from scriptkit.errors import ScriptArgumentError
from scriptkit.models import NO_VALUE, Failure, Outcome, Success

logger = logging.getLogger(__name__)

ENTRYPOINT_ATTR = "__scriptkit_main__"


def main(fn: Callable) -> Callable:
    """Mark ``fn`` as an entrypoint of the script that defines it."""
    setattr(fn, ENTRYPOINT_ATTR, True)
    return fn


# ============================================================
# Argument grouping
# ============================================================

def group_args(flat_args: List[str]) -> Tuple[List[str], Dict[str, Optional[str]]]:
    """Split raw script arguments into positional and keyword arguments.

    Raises:
        ScriptArgumentError: a keyword flag was given more than once
    """
    positional: List[str] = []
    keywords: Dict[str, Optional[str]] = {}

    i = 0
    while i < len(flat_args):
        token = flat_args[i]
        if token.startswith("--") and len(token) > 2:
            name = token[2:]
            if name in keywords:
                raise ScriptArgumentError(f"Duplicate script argument: --{name}")
            if i + 1 < len(flat_args) and not flat_args[i + 1].startswith("--"):
                keywords[name] = flat_args[i + 1]
                i += 2
            else:
                keywords[name] = None
                i += 1
        else:
            positional.append(token)
            i += 1

    return positional, keywords


def flatten_args(args: List[str], kwargs: Dict[str, Optional[str]]) -> List[str]:
    """Inverse of group_args, used to rebuild sys.argv."""
    flat = list(args)
    for name, value in kwargs.items():
        flat.append(f"--{name}")
        if value is not None:
            flat.append(value)
    return flat


# ============================================================
# Entrypoint binding
# ============================================================

def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "y", "on"):
        return True
    if lowered in ("0", "false", "no", "n", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


_CONVERTERS = {
    int: int,
    float: float,
    bool: _parse_bool,
    str: str,
}


def _converter_for(annotation) -> Optional[Callable[[str], Any]]:
    if annotation is inspect.Parameter.empty:
        return None
    # Optional[X] -> X
    origin = getattr(annotation, '__origin__', None)
    if origin is not None:
        args = [a for a in getattr(annotation, '__args__', ()) if a is not type(None)]
        if args:
            annotation = args[0]
    return _CONVERTERS.get(annotation)


def _convert(param: inspect.Parameter, value: Any) -> Any:
    if not isinstance(value, str):
        return value
    converter = _converter_for(param.annotation)
    if converter is None:
        return value
    try:
        return converter(value)
    except ValueError:
        type_name = getattr(param.annotation, '__name__', str(param.annotation))
        raise ScriptArgumentError(
            f"Invalid value for argument '{param.name}': {value!r} is not a valid {type_name}"
        )


def bind_arguments(
    fn: Callable,
    args: List[str],
    kwargs: Dict[str, Optional[str]],
) -> inspect.BoundArguments:
    """Bind string arguments to ``fn``'s signature, converting by annotation.

    A keyword given without a value binds as True. Dashes in keyword names
    map to underscores.
    """
    sig = inspect.signature(fn)
    keyword_values = {
        name.replace('-', '_'): (True if value is None else value)
        for name, value in kwargs.items()
    }

    try:
        bound = sig.bind(*args, **keyword_values)
    except TypeError as e:
        raise ScriptArgumentError(f"{e}\n\n{usage_for(fn)}")

    for name, value in list(bound.arguments.items()):
        param = sig.parameters[name]
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            bound.arguments[name] = tuple(_convert(param, v) for v in value)
        elif param.kind is inspect.Parameter.VAR_KEYWORD:
            continue
        else:
            bound.arguments[name] = _convert(param, value)
    return bound


def usage_for(fn: Callable) -> str:
    doc = inspect.getdoc(fn)
    line = f"def {fn.__name__}{inspect.signature(fn)}"
    if doc:
        line += "\n    " + doc.splitlines()[0]
    return line


def find_entrypoints(namespace: Dict[str, Any], filename: str) -> List[Callable]:
    """@main functions defined by the file ``filename``, in definition order."""
    found = []
    for value in namespace.values():
        if not callable(value) or not getattr(value, ENTRYPOINT_ATTR, False):
            continue
        code = getattr(value, '__code__', None)
        if code is not None and code.co_filename == filename:
            found.append(value)
    return found


def dispatch_entrypoint(
    namespace: Dict[str, Any],
    filename: str,
    args: List[str],
    kwargs: Dict[str, Optional[str]],
) -> Outcome:
    """Call the script's entrypoint with its arguments.

    Exceptions raised by the entrypoint itself propagate to the caller.
    """
    entrypoints = find_entrypoints(namespace, filename)

    if not entrypoints:
        # Plain scripts read their arguments from sys.argv
        return Success(NO_VALUE)

    if len(entrypoints) == 1:
        target = entrypoints[0]
        target_args = list(args)
    else:
        by_name = {fn.__name__: fn for fn in entrypoints}
        if not args or args[0] not in by_name:
            listing = "\n\n".join(usage_for(fn) for fn in entrypoints)
            return Failure(
                f"Need to specify a main method to call when running {filename}\n\n"
                f"Available main methods:\n\n{listing}"
            )
        target = by_name[args[0]]
        target_args = list(args[1:])

    try:
        bound = bind_arguments(target, target_args, kwargs)
    except ScriptArgumentError as e:
        return Failure(str(e), e)

    logger.debug(f"Calling entrypoint {target.__name__} with {dict(bound.arguments)}")
    result = target(*bound.args, **bound.kwargs)
    if result is None:
        return Success(NO_VALUE)
    return Success(result)
