"""ScriptKit - Errors

Raised before any code runs. Problems inside executed code never surface as
exceptions; they become Outcomes (see scriptkit.models).
"""


class ScriptKitError(Exception):
    """Base class for ScriptKit failures."""


class CliError(ScriptKitError):
    """Raised when the command line cannot be parsed."""


class ScriptArgumentError(ScriptKitError):
    """Raised when script arguments cannot be grouped or bound to an entrypoint."""


class CodeLoadError(ScriptKitError):
    """Raised by interp.load() when the loaded code fails without an exception."""
