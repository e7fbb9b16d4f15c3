# ==============================================================================
# Tests for CLI Help Commands
# ==============================================================================
"""
Tests that all CLI help commands generate the expected output.

Verifies that every command and subcommand in the blogengage CLI:
- Exits with code 0 when invoked with --help
- Contains the expected description text
- Lists the expected subcommands or options

These tests use the real app from blogengage.app (not minimal Typer apps)
to ensure the full command tree is wired up correctly and that Typer can
introspect all command function signatures without errors. A few commands
that need no database are also invoked end to end.
"""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from blogengage.app import app
from blogengage.core.fingerprint import compute_fingerprint
from blogengage.core.models import DeviceProfile

runner = CliRunner()


# ==============================================================================
# Root App
# ==============================================================================


class TestRootHelp:
    """Tests for the root `blogengage --help` output."""

    def test_exit_code(self):
        """Root --help exits successfully."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0

    def test_description(self):
        """Root --help shows the app description."""
        result = runner.invoke(app, ["--help"])
        assert "Blog visitor tracking and promotion targeting CLI" in result.output

    def test_lists_all_subcommands(self):
        """Root --help lists every top-level command."""
        result = runner.invoke(app, ["--help"])
        expected_commands = ["analytics", "config", "db", "promotions", "session", "status"]
        for cmd in expected_commands:
            assert cmd in result.output, f"Missing command: {cmd}"


# ==============================================================================
# Command Groups
# ==============================================================================


class TestGroupHelp:
    """Tests for each command group's help output."""

    @pytest.mark.parametrize(
        "group,description,subcommands",
        [
            ("session", "Visitor session inspection", ["show", "clear", "fingerprint"]),
            (
                "promotions",
                "Promotion management and targeting",
                ["list", "eligible", "create", "activate", "deactivate", "delete"],
            ),
            ("config", "Configuration management", ["show"]),
            ("db", "Database schema operations", ["init", "reset"]),
        ],
    )
    def test_group(self, group, description, subcommands):
        """Group --help shows its description and lists its subcommands."""
        result = runner.invoke(app, [group, "--help"])
        assert result.exit_code == 0
        assert description in result.output
        for cmd in subcommands:
            assert cmd in result.output, f"Missing {group} subcommand: {cmd}"


# ==============================================================================
# Commands
# ==============================================================================


class TestCommandHelp:
    """Tests for individual command help output."""

    @pytest.mark.parametrize(
        "args,description,options",
        [
            (["session", "show"], "Show the current visitor session", ["--browser", "--json"]),
            (["session", "clear"], "Discard the visitor session", ["--browser"]),
            (
                ["session", "fingerprint"],
                "Compute the device fingerprint",
                ["--user-agent", "--language", "--width", "--height", "--tz-offset", "--canvas"],
            ),
            (["promotions", "list"], "List promotions", ["--active", "--json"]),
            (
                ["promotions", "eligible"],
                "Show which active promotions",
                ["--page", "--browser", "--tab"],
            ),
            (
                ["promotions", "create"],
                "Create a promotion",
                ["--title", "--page", "--frequency", "--audience", "--start", "--end"],
            ),
            (["promotions", "activate"], "Activate a promotion", []),
            (["promotions", "deactivate"], "Deactivate a promotion", []),
            (["promotions", "delete"], "Delete a promotion", ["--yes"]),
            (["config", "show"], "Display current configuration", ["--json"]),
            (["db", "init"], "Create the database and engagement schema", []),
            (["db", "reset"], "Drop and recreate the engagement schema", ["--yes"]),
            (["analytics"], "Show post and promotion engagement analytics", ["--limit", "--json"]),
            (["status"], "", ["--json"]),
        ],
    )
    def test_command(self, args, description, options):
        """Command --help shows its description and options."""
        result = runner.invoke(app, [*args, "--help"])
        assert result.exit_code == 0
        assert description in result.output
        for option in options:
            assert option in result.output, f"Missing option: {option}"


# ==============================================================================
# Offline Commands
# ==============================================================================


class TestOfflineCommands:
    """Commands that run without PostgreSQL."""

    def test_fingerprint_matches_core(self):
        result = runner.invoke(
            app,
            [
                "session",
                "fingerprint",
                "--user-agent",
                "Mozilla/5.0",
                "--language",
                "en-US",
                "--width",
                "1920",
                "--height",
                "1080",
                "--tz-offset",
                "-120",
            ],
        )

        expected = compute_fingerprint(
            DeviceProfile(
                user_agent="Mozilla/5.0",
                language="en-US",
                screen_width=1920,
                screen_height=1080,
                timezone_offset=-120,
            )
        )
        assert result.exit_code == 0
        assert result.output.strip() == expected

    def test_config_show_json(self):
        result = runner.invoke(app, ["config", "show", "--json"])

        assert result.exit_code == 0
        config = json.loads(result.output)
        assert set(config) >= {"postgresql", "valkey", "tracking", "promotion"}
        assert config["tracking"]["session_timeout_minutes"] > 0

    def test_session_show_and_clear(self, fake_redis):
        with patch("blogengage.cli.shared.get_valkey_client", return_value=fake_redis):
            shown = runner.invoke(app, ["session", "show", "--browser", "alice", "--json"])
            cleared = runner.invoke(app, ["session", "clear", "--browser", "alice"])

        assert shown.exit_code == 0
        session = json.loads(shown.output)
        assert session["returning"] is False
        assert session["viewedPosts"] == []
        assert cleared.exit_code == 0
        assert "Session reset" in cleared.output
        assert session["id"] not in cleared.output
