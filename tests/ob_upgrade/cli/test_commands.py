"""CLI tests for ``ob upgrade`` and ``ob internal``."""

from __future__ import annotations

import re
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from ob_upgrade import app
from ob_upgrade.exceptions import DirtyWorkingTree, NoPathFound
from ob_upgrade.upgrade.orchestrator import MigrationReport
from tests.utils import commit_all

runner = CliRunner()


def _flat(output: str) -> str:
    # rich wraps long lines; compare on collapsed whitespace
    return " ".join(output.split())


class TestMigrateCommand:
    def test_prints_steps_in_order(self, tmp_path: Path) -> None:
        report = MigrationReport(
            "A", "C", [("B", "Rename config key X to Y"), ("C", "Move foo/ to bar/")]
        )
        with patch("ob_upgrade.upgrade.orchestrator.migrate", return_value=report) as mock_migrate:
            result = runner.invoke(app, ["internal", "migrate", "--project", str(tmp_path), "A"])

        assert result.exit_code == 0, result.output
        mock_migrate.assert_called_once_with(tmp_path.resolve(), "A")
        output = _flat(result.output)
        assert "=== [B] === Rename config key X to Y" in output
        assert output.index("[B]") < output.index("[C]")
        assert "2 migration step(s) to apply." in output

    def test_nothing_to_do(self, tmp_path: Path) -> None:
        with patch(
            "ob_upgrade.upgrade.orchestrator.migrate", return_value=MigrationReport("A", "A")
        ):
            result = runner.invoke(app, ["internal", "migrate", "--project", str(tmp_path), "A"])

        assert result.exit_code == 0
        assert "===" not in result.output

    def test_failure_exits_nonzero(self, tmp_path: Path) -> None:
        with patch(
            "ob_upgrade.upgrade.orchestrator.migrate",
            side_effect=NoPathFound("obelisk-upgrade", "B", "A"),
        ):
            result = runner.invoke(app, ["internal", "migrate", "--project", str(tmp_path), "B"])

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "Unable to find migration path from B to A" in _flat(result.output)


class TestDecideHandoffCommand:
    @pytest.mark.parametrize("decision, expected", [(True, "handoff"), (False, "retain")])
    def test_prints_decision(self, tmp_path: Path, decision: bool, expected: str) -> None:
        with patch("ob_upgrade.upgrade.orchestrator.decide_handoff", return_value=decision):
            result = runner.invoke(app, ["internal", "decide-handoff", "-p", str(tmp_path)])

        assert result.exit_code == 0
        assert result.output.strip().endswith(expected)

    def test_dirty_project(self, tmp_path: Path) -> None:
        with patch(
            "ob_upgrade.upgrade.orchestrator.decide_handoff",
            side_effect=DirtyWorkingTree(tmp_path, ["README.md"]),
        ):
            result = runner.invoke(app, ["internal", "decide-handoff", "-p", str(tmp_path)])

        assert result.exit_code == 1
        assert "uncommitted changes" in _flat(result.output)


class TestReleaseCommands:
    def test_hash(self, tmp_path: Path, ambient_ob: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OB_AMBIENT_DIR", str(ambient_ob))
        target = tmp_path / "other"
        target.mkdir()
        (target / "VERSION").write_text("Q\n", encoding="utf-8")

        result = runner.invoke(app, ["internal", "hash", "obelisk-upgrade", str(target)])

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "Q"

    def test_hash_defaults_to_running_ob(
        self, ambient_ob: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("OB_AMBIENT_DIR", str(ambient_ob))
        result = runner.invoke(app, ["internal", "hash", "obelisk-handoff"])
        assert result.output.strip() == "C"

    def test_hash_from_console_script_uses_bundled_graphs(
        self, tmp_path: Path, temp_repo: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        executable = tmp_path / "venv" / "bin" / "ob"
        executable.parent.mkdir(parents=True)
        executable.write_text("", encoding="utf-8")
        monkeypatch.setattr(sys, "argv", [str(executable)])
        (temp_repo / "README.md").write_text("ob\n", encoding="utf-8")
        commit_all(temp_repo)

        result = runner.invoke(app, ["internal", "hash", "obelisk-upgrade", str(temp_repo)])

        assert result.exit_code == 0, result.output
        assert re.fullmatch(r"[0-9a-f]{64}", result.output.strip())

    def test_unknown_graph_name(self) -> None:
        result = runner.invoke(app, ["internal", "hash", "obelisk-sideways"])
        assert result.exit_code == 2

    def test_verify_graph(self, ambient_ob: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OB_AMBIENT_DIR", str(ambient_ob))
        result = runner.invoke(app, ["internal", "verify-graph", "obelisk-handoff"])

        assert result.exit_code == 0, result.output
        assert "head is C" in _flat(result.output)

    def test_add_vertex_rejects_bad_handoff_action(
        self, ambient_ob: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("OB_AMBIENT_DIR", str(ambient_ob))
        result = runner.invoke(
            app, ["internal", "add-vertex", "obelisk-handoff", "--action", "sometimes"]
        )
        assert result.exit_code == 1


class TestUpgradeCommand:
    def test_no_handoff_flag_skips_decision(self, tmp_path: Path) -> None:
        with patch("ob_upgrade.cli.helpers.decide_handoff") as mock_decide, patch(
            "ob_upgrade.cli.commands.upgrade.run_upgrade"
        ) as mock_upgrade:
            result = runner.invoke(
                app, ["--no-handoff", "upgrade", "main", "--project", str(tmp_path)]
            )

        assert result.exit_code == 0, result.output
        mock_decide.assert_not_called()
        mock_upgrade.assert_called_once_with(tmp_path.resolve(), "main")

    def test_env_disables_handoff(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OB_NO_HANDOFF", "1")
        with patch("ob_upgrade.cli.helpers.decide_handoff") as mock_decide, patch(
            "ob_upgrade.cli.commands.upgrade.run_upgrade"
        ):
            result = runner.invoke(app, ["upgrade", "main", "-p", str(tmp_path)])

        assert result.exit_code == 0
        mock_decide.assert_not_called()

    def test_project_without_pinned_ob_warns(self, tmp_path: Path) -> None:
        with patch("ob_upgrade.cli.helpers.decide_handoff") as mock_decide, patch(
            "ob_upgrade.cli.commands.upgrade.run_upgrade"
        ) as mock_upgrade:
            result = runner.invoke(app, ["upgrade", "main", "-p", str(tmp_path)])

        assert result.exit_code == 0
        assert "has no pinned ob" in _flat(result.output)
        mock_decide.assert_not_called()
        mock_upgrade.assert_called_once()

    def test_hands_off_to_project_ob(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / ".obelisk" / "impl").mkdir(parents=True)
        executable = tmp_path / ".obelisk" / "impl" / "bin" / "ob"
        argv = ["ob", "upgrade", "main", "-p", str(tmp_path)]
        monkeypatch.setattr(sys, "argv", argv)

        with patch("ob_upgrade.cli.helpers.decide_handoff", return_value=True), patch(
            "ob_upgrade.cli.helpers.find_project_command", return_value=executable
        ), patch("ob_upgrade.cli.helpers.exec_command", side_effect=SystemExit(0)) as mock_exec, patch(
            "ob_upgrade.cli.commands.upgrade.run_upgrade"
        ) as mock_upgrade:
            runner.invoke(app, argv[1:])

        mock_exec.assert_called_once_with(executable, ["--no-handoff", *argv[1:]])
        mock_upgrade.assert_not_called()

    def test_retained_control_runs_upgrade(self, tmp_path: Path) -> None:
        (tmp_path / ".obelisk" / "impl").mkdir(parents=True)
        with patch("ob_upgrade.cli.helpers.decide_handoff", return_value=False), patch(
            "ob_upgrade.cli.helpers.exec_command"
        ) as mock_exec, patch("ob_upgrade.cli.commands.upgrade.run_upgrade") as mock_upgrade:
            result = runner.invoke(app, ["upgrade", "develop", "-p", str(tmp_path)])

        assert result.exit_code == 0, result.output
        mock_exec.assert_not_called()
        mock_upgrade.assert_called_once_with(tmp_path.resolve(), "develop")

    def test_upgrade_error_exits_nonzero(self, tmp_path: Path) -> None:
        with patch(
            "ob_upgrade.cli.commands.upgrade.run_upgrade",
            side_effect=DirtyWorkingTree(tmp_path),
        ):
            result = runner.invoke(app, ["--no-handoff", "upgrade", "main", "-p", str(tmp_path)])

        assert result.exit_code == 1
        assert "Commit or stash" in _flat(result.output)
