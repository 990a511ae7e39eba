"""ScriptKit - Execution Environment

Immutable configuration for one invocation. Variants (for example a
script-flavored storage) are made with ``env.model_copy(update={...})``.
"""

import sys
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from scriptkit.config import settings
from scriptkit.engine.storage import FolderStorage, Storage


class ExecutionEnvironment(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    predef: str = Field(default="", description="Extra code run before every session or script")
    default_predef: bool = Field(default=True, description="Run the builtin default predef first")
    storage: Storage = Field(
        default_factory=lambda: FolderStorage(settings.HOME_DIR),
        description="Backend for predef files, history and the session id",
    )
    wd: Path = Field(default_factory=Path.cwd, description="Directory relative paths resolve against")
    welcome_banner: Optional[str] = Field(
        default_factory=lambda: settings.welcome_banner,
        description="Printed when a REPL starts; None for no banner",
    )
    input_stream: Any = Field(default_factory=lambda: sys.stdin, description="REPL input")
    output_stream: Any = Field(default_factory=lambda: sys.stdout, description="Output of executed code")
    info_stream: Any = Field(default_factory=lambda: sys.stderr, description="Progress messages")
    error_stream: Any = Field(default_factory=lambda: sys.stderr, description="Errors and tracebacks")
    verbose_output: bool = Field(default=True, description="Print progress messages to info_stream")
    remote_logging: bool = Field(default=True, description="Post usage events to the remote logger")
