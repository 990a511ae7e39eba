"""ScriptKit - Settings

Environment-driven defaults shared by every entry point:
- SCRIPTKIT_HOME: storage folder for predef files, history and session id
- LOG_LEVEL: level for the standard logging setup in main()
- SCRIPTKIT_WATCH_INTERVAL: seconds between watched-file polls
- SCRIPTKIT_REMOTE_LOG_URL / SCRIPTKIT_REMOTE_LOG_TIMEOUT: remote event sink
"""

import os
import sys
from pathlib import Path

from scriptkit import __version__


class Settings:
    """Application settings read from environment variables"""

    def __init__(self):
        self.HOME_DIR = Path(os.getenv("SCRIPTKIT_HOME", str(Path.home() / ".scriptkit")))
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING").upper()

        # Watch mode
        self.WATCH_INTERVAL = float(os.getenv("SCRIPTKIT_WATCH_INTERVAL", "0.1"))

        # Remote logging
        # Empty URL: events are only written to the local log
        self.REMOTE_LOG_URL = os.getenv("SCRIPTKIT_REMOTE_LOG_URL", "")
        self.REMOTE_LOG_TIMEOUT = float(os.getenv("SCRIPTKIT_REMOTE_LOG_TIMEOUT", "2.0"))

        # REPL display
        self.REPL_WIDTH = int(os.getenv("SCRIPTKIT_REPL_WIDTH", "80"))
        self.REPL_HEIGHT = int(os.getenv("SCRIPTKIT_REPL_HEIGHT", "80"))

    @property
    def welcome_banner(self) -> str:
        python_version = sys.version.split()[0]
        return f"Welcome to ScriptKit {__version__}\n(Python {python_version})"


settings = Settings()
