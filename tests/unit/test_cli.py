"""Unit tests for unified CLI argument handling and settings mode."""

from __future__ import annotations

from argparse import Namespace

import pytest
import yaml

from softdim.common.config import ConfigLoader
from softdim.cli import (
    argsWithLogLevel_apply,
    arguments_parse,
    assignment_parse,
    logLevelOverride_get,
    settingsMode_isEnabled,
    settingsMode_run,
)


class TestLogLevelOverride:
    """Tests for CLI log-level precedence."""

    def test_info_overrides_debug_when_both_set(self) -> None:
        """
        `--info` should suppress debug noise when both flags are present.

        Returns:
            None.
        """
        args = Namespace(
            debug=True,
            info=True,
            warning=False,
            error=False,
            critical=False,
        )
        assert logLevelOverride_get(args) == "INFO"

    def test_warning_overrides_info(self) -> None:
        """
        More restrictive levels should take precedence.

        Returns:
            None.
        """
        args = Namespace(
            debug=True,
            info=True,
            warning=True,
            error=False,
            critical=False,
        )
        assert logLevelOverride_get(args) == "WARNING"

    def test_no_flags(self) -> None:
        """
        Without flags the config level applies.

        Returns:
            None.
        """
        args = arguments_parse([])
        assert logLevelOverride_get(args) is None
        argsWithLogLevel_apply(args, None)
        assert not hasattr(args, "log_level")

    def test_apply_sets_log_level(self) -> None:
        """
        An override lands on args for the bootstrap helpers.

        Returns:
            None.
        """
        args = arguments_parse(["--debug"])
        argsWithLogLevel_apply(args, logLevelOverride_get(args))
        assert args.log_level == "DEBUG"


class TestArgumentParsing:
    """Tests for settings-mode arguments."""

    def test_set_is_repeatable(self) -> None:
        args = arguments_parse(["--set", "monitors=external", "--set", "min-brightness=0.2"])
        assert args.assignments == ["monitors=external", "min-brightness=0.2"]
        assert settingsMode_isEnabled(args) is True

    def test_daemon_mode_by_default(self) -> None:
        args = arguments_parse(["--display", ":1"])
        assert args.display == ":1"
        assert settingsMode_isEnabled(args) is False

    def test_assignment_parse(self) -> None:
        assert assignment_parse("current-brightness = 0.6") == ("current-brightness", "0.6")
        assert assignment_parse("builtin-monitor=") == ("builtin-monitor", "")

    @pytest.mark.parametrize("raw", ["monitors", "=all"])
    def test_assignment_parse_rejects(self, raw: str) -> None:
        with pytest.raises(ValueError, match="Expected KEY=VALUE"):
            assignment_parse(raw)


@pytest.fixture
def no_config_file(monkeypatch, tmp_path) -> None:
    """Keep config search away from real config files."""
    monkeypatch.setattr(ConfigLoader, "DEFAULT_CONFIG_PATHS", [str(tmp_path / "missing.yml")])


class TestSettingsMode:
    """Tests for `--set` and `--show` against a state file."""

    def test_set_writes_state_file(self, tmp_path, no_config_file) -> None:
        state_file = tmp_path / "settings.yml"
        args = arguments_parse(
            ["--state-file", str(state_file), "--set", "monitors=external", "--set", "debug=on"]
        )

        settingsMode_run(args)

        data = yaml.safe_load(state_file.read_text())
        assert data["monitors"] == "external"
        assert data["debug"] is True

    def test_show_prints_values(self, tmp_path, no_config_file, capsys) -> None:
        state_file = tmp_path / "settings.yml"
        state_file.write_text("current-brightness: 0.4\n")
        args = arguments_parse(["--state-file", str(state_file), "--show"])

        settingsMode_run(args)

        out = capsys.readouterr().out
        assert "current-brightness: 0.4" in out
        assert "monitors: all" in out

    def test_unknown_key_raises(self, tmp_path, no_config_file) -> None:
        args = arguments_parse(["--state-file", str(tmp_path / "s.yml"), "--set", "contrast=2"])

        with pytest.raises(KeyError):
            settingsMode_run(args)

    def test_bad_assignment_writes_nothing(self, tmp_path, no_config_file) -> None:
        state_file = tmp_path / "settings.yml"
        state_file.write_text("monitors: all\n")
        args = arguments_parse(
            ["--state-file", str(state_file), "--set", "monitors=external", "--set", "min-brightness=nan"]
        )

        with pytest.raises(ValueError, match="Invalid number"):
            settingsMode_run(args)

        assert yaml.safe_load(state_file.read_text()) == {"monitors": "all"}
