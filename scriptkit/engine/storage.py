"""ScriptKit - Storage Backends

Where persistent data lives between invocations:
- the user predef file (predef.py for the REPL, predefScript.py for scripts)
- the session id used to tag remote log events
- REPL history (JSON list of inputs)

FolderStorage keeps everything under a home directory. InMemoryStorage keeps
it in process, for embedding and tests.
"""

import json
import uuid
import logging
import importlib.util
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


class Storage(ABC):
    """Interface shared by all storage backends"""

    @property
    def predef_path(self) -> Optional[Path]:
        """File load_predef() reads, if the backend uses one."""
        return None

    @abstractmethod
    def load_predef(self) -> Tuple[str, Optional[Path]]:
        """Return (predef code, file it came from). ("", None) when there is none."""

    @abstractmethod
    def get_session_id(self) -> str:
        """Stable id tagging remote log events."""

    @abstractmethod
    def load_history(self) -> List[str]:
        """Previous REPL inputs, oldest first."""

    @abstractmethod
    def save_history(self, history: List[str]) -> None:
        """Replace the stored REPL inputs."""


class FolderStorage(Storage):
    """Stores predef, session id and history as files in a home directory.

    Args:
        home: Directory holding the files (created on first write)
        is_repl: Selects predef.py (REPL) or predefScript.py (scripts)
        predef_file: Overrides the predef file location. A missing override
            degrades to an empty predef.
    """

    PREDEF_REPL = "predef.py"
    PREDEF_SCRIPT = "predefScript.py"
    SESSION_ID_FILE = "sessionId"
    HISTORY_FILE = "history"

    def __init__(self, home: Path, is_repl: bool = True, predef_file: Optional[Path] = None):
        self.home = Path(home)
        self.is_repl = is_repl
        self.predef_file = Path(predef_file) if predef_file is not None else None

    @property
    def predef_path(self) -> Path:
        if self.predef_file is not None:
            return self.predef_file
        return self.home / (self.PREDEF_REPL if self.is_repl else self.PREDEF_SCRIPT)

    def load_predef(self) -> Tuple[str, Optional[Path]]:
        """Read the predef file, honoring a PEP 263 coding cookie.

        Raises:
            UnicodeDecodeError, SyntaxError: the file cannot be decoded
        """
        path = self.predef_path
        try:
            return importlib.util.decode_source(path.read_bytes()), path
        except FileNotFoundError:
            logger.debug(f"No predef file at {path}")
            return "", None

    def get_session_id(self) -> str:
        session_file = self.home / self.SESSION_ID_FILE
        try:
            session_id = session_file.read_text(encoding="utf-8").strip()
            if session_id:
                return session_id
        except FileNotFoundError:
            pass

        session_id = str(uuid.uuid4())
        self.home.mkdir(parents=True, exist_ok=True)
        session_file.write_text(session_id, encoding="utf-8")
        logger.info(f"Allocated new session id {session_id}")
        return session_id

    def load_history(self) -> List[str]:
        history_file = self.home / self.HISTORY_FILE
        try:
            data = json.loads(history_file.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except (ValueError, OSError) as e:
            logger.warning(f"Ignoring unreadable history file {history_file}: {e}")
            return []
        if not isinstance(data, list):
            return []
        return [str(entry) for entry in data]

    def save_history(self, history: List[str]) -> None:
        self.home.mkdir(parents=True, exist_ok=True)
        history_file = self.home / self.HISTORY_FILE
        history_file.write_text(json.dumps(list(history)), encoding="utf-8")
        logger.debug(f"Saved {len(history)} history entries to {history_file}")

    def __repr__(self) -> str:
        return f"FolderStorage(home={str(self.home)!r}, is_repl={self.is_repl})"


class InMemoryStorage(Storage):
    """Keeps everything in process; nothing survives the interpreter."""

    def __init__(self, predef: str = "", session_id: Optional[str] = None):
        self.predef = predef
        self.session_id = session_id or str(uuid.uuid4())
        self.history: List[str] = []

    def load_predef(self) -> Tuple[str, Optional[Path]]:
        return self.predef, None

    def get_session_id(self) -> str:
        return self.session_id

    def load_history(self) -> List[str]:
        return list(self.history)

    def save_history(self, history: List[str]) -> None:
        self.history = list(history)
