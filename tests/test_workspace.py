"""Tests for crates_io_utils.workspace - temp dir release and exit codes."""

import pytest

from crates_io_utils.contracts import EXIT_ABORTED, EXIT_FAILED, EXIT_OK
from crates_io_utils.diagnostics import fail
from crates_io_utils.workspace import ScopedWorkspace, run_in_workspace

from .conftest import json_response


class TestScopedWorkspace:
    def test_setup_creates_empty_directory(self, tmp_path):
        ws = ScopedWorkspace(parent=tmp_path)
        path = ws.setup()
        try:
            assert path.is_dir()
            assert list(path.iterdir()) == []
            assert path.parent == tmp_path
            assert path.name.startswith("crates-io-utils.")
        finally:
            ws.cleanup()

    def test_unique_directories(self, tmp_path):
        with ScopedWorkspace(parent=tmp_path) as a, ScopedWorkspace(parent=tmp_path) as b:
            assert a.path != b.path

    def test_setup_twice_rejected(self, tmp_path):
        with ScopedWorkspace(parent=tmp_path) as ws:
            with pytest.raises(RuntimeError):
                ws.setup()

    def test_directory_removed_on_exit(self, tmp_path):
        with ScopedWorkspace(parent=tmp_path) as ws:
            (ws.path / "nested").mkdir()
            (ws.path / "nested" / "body.json").write_text("{}")
        assert not ws.path.exists()

    def test_directory_removed_on_exception(self, tmp_path):
        with pytest.raises(ValueError):
            with ScopedWorkspace(parent=tmp_path) as ws:
                raise ValueError("boom")
        assert not ws.path.exists()

    def test_directory_removed_on_fail(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as excinfo:
            with ScopedWorkspace(parent=tmp_path) as ws:
                fail("unexpected HTTP response status code 503")
        assert excinfo.value.code == EXIT_FAILED
        assert not ws.path.exists()

    def test_cleanup_runs_once(self, tmp_path):
        ws = ScopedWorkspace(parent=tmp_path)
        path = ws.setup()
        ws.cleanup()
        # a new directory at the same path must survive a second cleanup
        path.mkdir()
        ws.cleanup()
        assert path.exists()

    def test_cleanup_tolerates_missing_directory(self, tmp_path):
        ws = ScopedWorkspace(parent=tmp_path)
        ws.setup().rmdir()
        ws.cleanup()

    def test_cleanup_without_setup(self):
        ScopedWorkspace().cleanup()


class TestExitCode:
    def test_default_is_aborted(self):
        assert ScopedWorkspace().exit_code() == EXIT_ABORTED

    def test_finish_ok(self):
        ws = ScopedWorkspace()
        ws.finish_ok()
        assert ws.exit_code() == EXIT_OK

    def test_explicit_failure_wins(self):
        ws = ScopedWorkspace()
        ws.finish_ok()
        assert ws.exit_code(SystemExit(EXIT_FAILED)) == EXIT_FAILED

    @pytest.mark.parametrize("code", [None, 0])
    def test_clean_early_exit_is_aborted(self, code):
        assert ScopedWorkspace().exit_code(SystemExit(code)) == EXIT_ABORTED

    def test_message_exit_is_failure(self):
        assert ScopedWorkspace().exit_code(SystemExit("fatal: could not write report")) == EXIT_FAILED

    def test_message_exit_after_finish_is_failure(self):
        ws = ScopedWorkspace()
        ws.finish_ok()
        assert ws.exit_code(SystemExit("fatal: could not write report")) == EXIT_FAILED

    def test_unexpected_exception_is_aborted(self):
        ws = ScopedWorkspace()
        ws.finish_ok()
        assert ws.exit_code(RuntimeError("late failure")) == EXIT_ABORTED


class TestRunInWorkspace:
    def _run(self, body):
        seen = []

        def wrapper(ws):
            seen.append(ws.path)
            body(ws)

        with pytest.raises(SystemExit) as excinfo:
            run_in_workspace(wrapper)
        assert seen and not seen[0].exists()
        return excinfo.value.code

    def test_finished(self):
        assert self._run(lambda ws: ws.finish_ok()) == EXIT_OK

    def test_returned_without_finishing(self):
        assert self._run(lambda ws: None) == EXIT_ABORTED

    def test_failed(self, capsys):
        def body(ws):
            fail("bad JSON data")

        assert self._run(body) == EXIT_FAILED

    def test_failed_after_finish(self, capsys):
        def body(ws):
            ws.finish_ok()
            fail("bad JSON data")

        assert self._run(body) == EXIT_FAILED

    @pytest.mark.parametrize("finish", [False, True])
    def test_exit_with_message(self, capsys, finish):
        def body(ws):
            if finish:
                ws.finish_ok()
            raise SystemExit("fatal: could not write report")

        assert self._run(body) == EXIT_FAILED
        assert capsys.readouterr().err == "fatal: could not write report\n"

    def test_unexpected_exception(self):
        def body(ws):
            raise RuntimeError("boom")

        assert self._run(body) == EXIT_ABORTED

    def test_interrupted(self):
        def body(ws):
            raise KeyboardInterrupt

        assert self._run(body) == EXIT_ABORTED

    def test_passes_arguments(self):
        got = []
        with pytest.raises(SystemExit):
            run_in_workspace(lambda ws, a, b: got.append((a, b)), 1, "two")
        assert got == [(1, "two")]

    def test_call_then_return_without_finishing(self, make_client):
        client = make_client(lambda r: json_response(200, {"crate": {"name": "serde"}}))
        results = []

        def body(ws):
            results.append(client.call_or_fail("crates/serde", ".crate", ws.path / "out"))

        assert self._run(body) == EXIT_ABORTED
        assert results[0].status_code == 200
