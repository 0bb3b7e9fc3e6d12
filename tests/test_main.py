"""Tests for the command-line entry point."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from src.checklist.registry import build_manager
from src.checklist.severity import Severity
from src.main import EXIT_NOT_READY, EXIT_READY, EXIT_UNDECIDED, decide_ready, main
from src.probes import ProbeResult


@pytest.fixture
def checklist_file(tmp_path: Path) -> Path:
    path = tmp_path / "checklist.yaml"
    path.write_text(yaml.dump({"checks": [
        {"id": "one", "type": "http", "url": "http://x/1"},
        {"id": "two", "type": "http", "url": "http://x/2"},
    ]}), encoding="utf-8")
    return path


class TestDecideReady:
    def test_default_policy(self) -> None:
        assert decide_ready(Severity.SAFE)
        assert decide_ready(Severity.WARNING)
        assert not decide_ready(Severity.PENDING)
        assert not decide_ready(Severity.ERROR)

    def test_strict_policy(self) -> None:
        assert decide_ready(Severity.SAFE, strict=True)
        assert not decide_ready(Severity.WARNING, strict=True)


class TestCheckCommand:
    @patch("src.probes.items.execute_probe")
    def test_ready(self, mock_exec, checklist_file: Path) -> None:
        mock_exec.return_value = ProbeResult(Severity.WARNING, "slow")
        assert main(["--file", str(checklist_file), "check", "--timeout", "5"]) == EXIT_READY

    @patch("src.probes.items.execute_probe")
    def test_strict_warning_not_ready(self, mock_exec, checklist_file: Path) -> None:
        mock_exec.return_value = ProbeResult(Severity.WARNING, "slow")
        code = main(["--file", str(checklist_file), "check", "--timeout", "5", "--strict"])
        assert code == EXIT_NOT_READY

    @patch("src.probes.items.execute_probe")
    def test_error_not_ready(self, mock_exec, checklist_file: Path) -> None:
        mock_exec.return_value = ProbeResult(Severity.ERROR, "down")
        assert main(["--file", str(checklist_file), "check", "--timeout", "5"]) == EXIT_NOT_READY

    def test_no_checks(self, tmp_path: Path) -> None:
        assert main(["--file", str(tmp_path / "missing.yaml"), "check"]) == EXIT_UNDECIDED

    def test_no_command(self) -> None:
        assert main([]) == EXIT_UNDECIDED


class TestListCommand:
    def test_list(self, checklist_file: Path, capsys) -> None:
        assert main(["--file", str(checklist_file), "list"]) == EXIT_READY
        out = capsys.readouterr().out
        assert "one" in out
        assert "http://x/2" in out


class TestWatchCommand:
    @patch("src.main.time.sleep", side_effect=KeyboardInterrupt)
    @patch("src.probes.items.execute_probe")
    def test_watch_until_interrupted(self, mock_exec, mock_sleep, checklist_file: Path, capsys) -> None:
        mock_exec.return_value = ProbeResult(Severity.SAFE, "ok")
        assert main(["--file", str(checklist_file), "watch"]) == EXIT_READY
        mock_sleep.assert_called_once_with(1)
        out = capsys.readouterr().out
        assert "Watching 2 checks" in out
        assert "one" in out and "two" in out

    @patch("src.main.time.sleep", side_effect=KeyboardInterrupt)
    def test_watch_stops_monitoring_on_interrupt(self, _mock_sleep, checklist_file: Path) -> None:
        built = []

        def keep(path, camera_index=None):
            manager = build_manager(path, camera_index=camera_index)
            built.append(manager)
            return manager

        with patch("src.main.build_manager", side_effect=keep), \
                patch("src.probes.items.execute_probe", return_value=ProbeResult(Severity.SAFE, "ok")):
            main(["--file", str(checklist_file), "watch", "--camera", "2"])

        (manager,) = built
        assert manager.monitoring_active is False
        assert manager.preferred_camera_index == 2
        assert not any(item.is_monitoring for item in manager.items)
