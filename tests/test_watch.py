import io
from pathlib import Path

import pytest

from scriptkit.models import WatchedFile, mtime_if_exists
from scriptkit.watch import WatchLoop

A, B, C = Path("/w/a.py"), Path("/w/b.py"), Path("/w/c.py")


class _Stop(Exception):
    pass


class FakeFiles:
    def __init__(self, **mtimes):
        self.mtimes = {Path(k): v for k, v in mtimes.items()}
        self.calls = []

    def stat(self, path):
        self.calls.append(path)
        return self.mtimes.get(path)


def test_without_watch_runs_once_and_never_sleeps():
    sleeps = []
    loop = WatchLoop(lambda: (False, [WatchedFile(A, 1)]), io.StringIO(), sleep=sleeps.append)

    assert loop.run(False) is False
    assert loop.runs == 1
    assert sleeps == []


def test_unchanged_files_never_trigger_a_rerun():
    files = FakeFiles(**{str(A): 1})
    sleeps = []

    def sleep(interval):
        sleeps.append(interval)
        if len(sleeps) == 5:
            raise _Stop

    info = io.StringIO()
    loop = WatchLoop(lambda: (True, [WatchedFile(A, 1), WatchedFile(B, None)]), info,
                     interval=0.5, sleep=sleep, stat=files.stat)

    with pytest.raises(_Stop):
        loop.run(True)

    assert loop.runs == 1
    assert sleeps == [0.5] * 5
    assert info.getvalue() == "Watching for changes to 2 files... (Ctrl-C to exit)\n"


def test_change_reruns_and_watched_set_is_replaced():
    files = FakeFiles(**{str(A): 1, str(B): 1, str(C): 5})
    results = iter([
        (True, [WatchedFile(A, 1), WatchedFile(B, 1)]),
        (False, [WatchedFile(A, 2), WatchedFile(C, 5)]),
    ])
    calls_per_run = []

    def run_once():
        calls_per_run.append(files.calls)
        files.calls = []
        return next(results)

    def sleep(interval):
        if len(calls_per_run) == 1:
            files.mtimes[A] = 2
        else:
            raise _Stop

    loop = WatchLoop(run_once, io.StringIO(), sleep=sleep, stat=files.stat)

    with pytest.raises(_Stop):
        loop.run(True)

    assert loop.runs == 2
    assert set(files.calls) == {A, C}


@pytest.mark.parametrize(
    "captured, current",
    [(1, 2), (1, None), (None, 3)],
    ids=["modified", "deleted", "created"],
)
def test_any_mtime_difference_counts_as_change(captured, current):
    files = FakeFiles(**{str(A): current})
    loop = WatchLoop(lambda: (True, []), io.StringIO(), stat=files.stat)

    assert loop.unchanged([WatchedFile(A, captured)]) is False


def test_empty_watched_set_is_unchanged():
    loop = WatchLoop(lambda: (True, []), io.StringIO())
    assert loop.unchanged([]) is True


def test_unreadable_paths_count_as_missing(tmp_path):
    regular_file = tmp_path / "plain.txt"
    regular_file.write_text("x")
    below_a_file = regular_file / "child.py"

    assert mtime_if_exists(below_a_file) is None
    assert mtime_if_exists(tmp_path / "absent.py") is None
    assert mtime_if_exists(regular_file) == regular_file.stat().st_mtime_ns

    loop = WatchLoop(lambda: (True, []), io.StringIO())
    assert loop.unchanged([WatchedFile(below_a_file, None)]) is True
