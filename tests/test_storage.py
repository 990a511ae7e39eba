from pathlib import Path

import pytest

from scriptkit.engine.storage import FolderStorage, InMemoryStorage, Storage


def test_folder_storage_missing_predef_is_empty(tmp_path: Path) -> None:
    storage = FolderStorage(tmp_path)
    assert storage.load_predef() == ("", None)


def test_folder_storage_picks_predef_by_mode(tmp_path: Path) -> None:
    (tmp_path / "predef.py").write_text("repl = True\n")
    (tmp_path / "predefScript.py").write_text("script = True\n")

    assert FolderStorage(tmp_path, is_repl=True).load_predef() == ("repl = True\n", tmp_path / "predef.py")
    assert FolderStorage(tmp_path, is_repl=False).load_predef() == (
        "script = True\n",
        tmp_path / "predefScript.py",
    )


def test_predef_file_override(tmp_path: Path) -> None:
    custom = tmp_path / "custom.py"
    custom.write_text("y = 2\n")
    (tmp_path / "predef.py").write_text("ignored = True\n")

    storage = FolderStorage(tmp_path, predef_file=custom)

    assert storage.load_predef() == ("y = 2\n", custom)


def test_missing_predef_file_override_degrades_to_empty(tmp_path: Path) -> None:
    storage = FolderStorage(tmp_path, predef_file=tmp_path / "does-not-exist.py")
    assert storage.load_predef() == ("", None)


def test_session_id_is_allocated_once(tmp_path: Path) -> None:
    home = tmp_path / "home"
    first = FolderStorage(home).get_session_id()

    assert (home / "sessionId").read_text() == first
    assert FolderStorage(home).get_session_id() == first


def test_history_survives_between_storages(tmp_path: Path) -> None:
    FolderStorage(tmp_path).save_history(["x = 1", "x + 1"])
    assert FolderStorage(tmp_path).load_history() == ["x = 1", "x + 1"]


def test_corrupt_history_is_ignored(tmp_path: Path) -> None:
    (tmp_path / "history").write_text("{not json")
    assert FolderStorage(tmp_path).load_history() == []


def test_in_memory_storage():
    storage = InMemoryStorage(predef="z = 3", session_id="abc")

    assert storage.load_predef() == ("z = 3", None)
    assert storage.get_session_id() == "abc"
    storage.save_history(["1"])
    assert storage.load_history() == ["1"]


def test_incomplete_backend_fails_at_construction():
    class PredefOnly(Storage):
        def load_predef(self):
            return "", None

    with pytest.raises(TypeError):
        PredefOnly()


def test_predef_path_is_only_known_for_folders(tmp_path: Path) -> None:
    assert InMemoryStorage().predef_path is None
    assert FolderStorage(tmp_path, is_repl=False).predef_path == tmp_path / "predefScript.py"


def test_predef_coding_cookie_is_honored(tmp_path: Path) -> None:
    (tmp_path / "predef.py").write_bytes(b"# -*- coding: latin-1 -*-\ngreeting = 'ol\xe9'\n")

    code, _ = FolderStorage(tmp_path).load_predef()

    assert "greeting = 'olé'" in code


def test_undecodable_predef_raises(tmp_path: Path) -> None:
    (tmp_path / "predef.py").write_bytes(b"x = '\xff\xfe'\n")

    with pytest.raises(UnicodeDecodeError):
        FolderStorage(tmp_path).load_predef()
