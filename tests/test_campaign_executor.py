"""Tests for campaign/executor.py - bounded-retry campaign execution."""

import shlex
import sys
from unittest.mock import MagicMock, patch

import pytest

from entropy_campaign.campaign.executor import (
    MAX_ATTEMPTS,
    compose_runner_command,
    run_campaign,
    run_item,
    stderr_runner,
    subprocess_runner,
)
from entropy_campaign.types import ConfigurationError


class TestComposeRunnerCommand:
    """Tests for compose_runner_command function."""

    def test_qemu_command(self, make_config, tmp_path):
        config = make_config(length=4096)
        runner_path = tmp_path / "run-boot-test"
        cmd = compose_runner_command(config, "entropy.len=1024", runner_path)

        assert cmd == [
            str(runner_path),
            "-a",
            "x86",
            "-c",
            "entropy.len=1024",
            "-l",
            "4096",
            "-m",
            "qemu",
            "-o",
            str(config.output_dir),
            "-b",
            str(config.build_dir),
            "-s",
            "hw_rng",
        ]

    def test_no_device_no_flag(self, make_config, tmp_path):
        """Without a device there is neither -n nor an empty placeholder."""
        cmd = compose_runner_command(make_config(), "x", tmp_path / "run")
        assert "-n" not in cmd
        assert "" not in cmd

    def test_device_pair(self, make_config, tmp_path):
        config = make_config(target="hikey960", device="zircon-a", source="jitterentropy")
        cmd = compose_runner_command(config, "x", tmp_path / "run")

        assert cmd.count("-n") == 1
        assert cmd[cmd.index("-n") + 1] == "zircon-a"
        assert cmd[cmd.index("-m") + 1] == "netboot"
        assert cmd[cmd.index("-s") + 1] == "jitterentropy"
        assert cmd[cmd.index("-a") + 1] == "arm64"

    def test_device_escaped_in_rendered_command(self, make_config, tmp_path):
        config = make_config(target="pc", device="lab node;1")
        cmd = compose_runner_command(config, "x", tmp_path / "run")

        # argv carries the raw value; the shell rendering quotes it
        assert cmd[cmd.index("-n") + 1] == "lab node;1"
        assert "-n 'lab node;1'" in shlex.join(cmd)

    def test_plain_device_not_quoted(self, make_config, tmp_path):
        config = make_config(target="pc", device="zircon-a")
        rendered = shlex.join(compose_runner_command(config, "x", tmp_path / "run"))
        assert "-n zircon-a " in rendered


class TestRunItem:
    """Tests for run_item function."""

    @pytest.mark.parametrize("k", range(1, MAX_ATTEMPTS + 1))
    def test_passes_on_attempt_k(self, make_config, tmp_path, k, scripted_runner):
        runner = scripted_runner([1] * (k - 1) + [0])
        outcomes = run_item(make_config(), "entropy.len=1024", tmp_path / "run", runner)

        assert len(runner.commands) == k
        assert [o.attempt_number for o in outcomes] == list(range(1, k + 1))
        assert outcomes[-1].succeeded
        assert not any(o.succeeded for o in outcomes[:-1])

    def test_exhausts_attempts(self, make_config, tmp_path, scripted_runner):
        runner = scripted_runner(default=3)
        outcomes = run_item(make_config(), "entropy.len=1024", tmp_path / "run", runner)

        assert len(runner.commands) == MAX_ATTEMPTS == 5
        assert not any(o.succeeded for o in outcomes)
        assert all(o.exit_code == 3 for o in outcomes)

    def test_launch_error_counts_as_failure(self, make_config, tmp_path):
        calls = []

        def broken(cmd):
            calls.append(cmd)
            raise PermissionError("not executable")

        outcomes = run_item(make_config(), "x", tmp_path / "run", broken)
        assert len(calls) == MAX_ATTEMPTS
        assert all(o.exit_code is None and not o.succeeded for o in outcomes)


class TestRunCampaign:
    """Tests for run_campaign function."""

    def test_all_pass_in_order(self, make_config, settings, scripted_runner):
        items = ["entropy.len=1024", "entropy.len=2048", "entropy.len=4096"]
        runner = scripted_runner()
        result = run_campaign(make_config(), items, settings, runner=runner)

        assert result.all_passed
        assert result.failing_item is None
        assert result.items_completed == 3
        assert runner.items == items

    def test_uses_settings_runner_path(self, make_config, settings, scripted_runner):
        runner = scripted_runner()
        run_campaign(make_config(), ["a"], settings, runner=runner)
        assert runner.commands[0][0] == str(settings.effective_runner_path())

    def test_retries_then_advances(self, make_config, settings, scripted_runner):
        runner = scripted_runner([1, 1, 0, 0])
        result = run_campaign(make_config(), ["a", "b"], settings, runner=runner)

        assert result.all_passed
        assert runner.items == ["a", "a", "a", "b"]
        assert len(result.attempts_for(1)) == 3
        assert len(result.attempts_for(2)) == 1

    def test_repeated_item_kept_apart(self, make_config, settings, scripted_runner):
        runner = scripted_runner([0, 0] + [1] * MAX_ATTEMPTS)
        result = run_campaign(make_config(), ["a", "b", "a"], settings, runner=runner)

        assert not result.all_passed
        assert result.failing_item == "a"
        assert result.items_completed == 2
        first, third = result.attempts_for(1), result.attempts_for(3)
        assert [o.succeeded for o in first] == [True]
        assert len(third) == MAX_ATTEMPTS
        assert not any(o.succeeded for o in third)

    def test_first_item_exhausted_aborts(self, make_config, settings, scripted_runner):
        items = ["entropy.len=1024 kernel.foo", "entropy.len=2048", "entropy.len=4096"]
        runner = scripted_runner(default=1)
        result = run_campaign(make_config(), items, settings, runner=runner)

        assert not result.all_passed
        assert result.failing_item == "entropy.len=1024 kernel.foo"
        assert result.items_completed == 0
        assert runner.items == [items[0]] * MAX_ATTEMPTS

    def test_middle_item_exhausted_aborts(self, make_config, settings, scripted_runner):
        runner = scripted_runner([0] + [1] * MAX_ATTEMPTS)
        result = run_campaign(make_config(), ["a", "b", "c"], settings, runner=runner)

        assert not result.all_passed
        assert result.failing_item == "b"
        assert result.items_completed == 1
        assert "c" not in runner.items
        assert len(runner.commands) == 1 + MAX_ATTEMPTS

    def test_netboot_without_device_refused(self, make_config, settings, scripted_runner):
        runner = scripted_runner()
        with pytest.raises(ConfigurationError):
            run_campaign(make_config(target="pc"), ["a"], settings, runner=runner)
        assert runner.commands == []

    def test_result_to_dict(self, make_config, settings, scripted_runner):
        runner = scripted_runner([2, 0])
        result = run_campaign(make_config(), ["a"], settings, runner=runner)
        data = result.to_dict()

        assert data["all_passed"] is True
        assert data["failing_item"] is None
        assert [a["exit_code"] for a in data["attempts"]] == [2, 0]
        assert [a["index"] for a in data["attempts"]] == [1, 1]


class TestSubprocessRunner:
    """Tests for subprocess_runner function."""

    def test_returns_exit_code(self):
        with patch("entropy_campaign.campaign.executor.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=7)
            assert subprocess_runner(["run-boot-test"]) == 7
        mock_run.assert_called_once_with(["run-boot-test"], check=False)

    def test_stderr_runner_keeps_stdout_clean(self):
        with patch("entropy_campaign.campaign.executor.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)
            assert stderr_runner(["run-boot-test"]) == 0
        mock_run.assert_called_once_with(
            ["run-boot-test"], stdout=sys.stderr, check=False
        )
