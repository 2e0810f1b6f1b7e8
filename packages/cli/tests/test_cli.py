"""Tests for the CLI entry point."""

import subprocess
from unittest.mock import MagicMock, patch

import click
import pytest
from click.testing import CliRunner

from prpilot_cli.auth import require_credentials, resolve_github_token
from prpilot_cli.cli import _build_ledger, main
from prpilot_core.models import Channel, OutcomeStatus, PullRequestTarget, ReviewOutcome
from prpilot_store.memory import MemoryLedger
from prpilot_store.models import LedgerEntry
from prpilot_store.sqlite import SQLiteLedger

TARGET = PullRequestTarget("acme", "widgets", 42, Channel.DIRECT_INVOCATION)


def _make_config(github_token="tok", model="openai", openai_key="oai", anthropic_key=None):
    return {
        "github_token": github_token,
        "model": model,
        "openai_api_key": openai_key,
        "anthropic_api_key": anthropic_key,
        "actor_login": "prpilot-bot",
        "webhook_secret": "s3cret",
        "asana_token": None,
        "mention": "@AsanaPRBot",
        "ledger": "memory",
        "host": "0.0.0.0",
        "port": 3000,
    }


def _patch_common(mocker, config=None, token="tok"):
    """Patch load_config, resolve_github_token, and _build_ledger for most tests."""
    cfg = config or _make_config()
    mocker.patch("prpilot_core.config.load_config", return_value=cfg)
    mocker.patch("prpilot_cli.auth.resolve_github_token", return_value=token)
    mock_ledger = MagicMock(spec=MemoryLedger)
    mock_ledger.list_entries.return_value = []
    mocker.patch("prpilot_cli.cli._build_ledger", return_value=mock_ledger)
    return cfg, mock_ledger


def _outcome(status=OutcomeStatus.PUBLISHED, **kwargs):
    return ReviewOutcome(status, "direct:acme/widgets#42", TARGET, **kwargs)


class TestCLIValidation:
    def test_missing_github_token(self, mocker):
        _patch_common(mocker, config=_make_config(github_token=None), token=None)

        result = CliRunner().invoke(main, ["review", "--repo", "acme/widgets", "--pr", "42"])
        assert result.exit_code != 0
        assert "GITHUB_TOKEN" in result.output

    def test_missing_openai_key(self, mocker):
        _patch_common(mocker, config=_make_config(openai_key=None))

        result = CliRunner().invoke(main, ["review", "--repo", "acme/widgets", "--pr", "42"])
        assert result.exit_code != 0
        assert "OPENAI_API_KEY" in result.output

    def test_missing_anthropic_key_with_model_flag(self, mocker):
        _patch_common(mocker)

        result = CliRunner().invoke(main, ["review", "--repo", "acme/widgets", "--pr", "42", "--model", "anthropic"])
        assert result.exit_code != 0
        assert "ANTHROPIC_API_KEY" in result.output

    def test_pr_is_required(self, mocker):
        _patch_common(mocker)
        result = CliRunner().invoke(main, ["review", "--repo", "acme/widgets"])
        assert result.exit_code != 0


class TestReviewCommand:
    def test_calls_handle_direct_with_correct_args(self, mocker):
        _, ledger = _patch_common(mocker)
        services = MagicMock()
        build = mocker.patch("prpilot_cli.commands.review.build_services", return_value=services)
        handle = mocker.patch("prpilot_cli.commands.review.handle_direct", return_value=_outcome())

        result = CliRunner().invoke(main, ["review", "--repo", "acme/widgets", "--pr", "42"])

        assert result.exit_code == 0, result.output
        assert build.call_args.args[1] is ledger
        handle.assert_called_once_with(
            "acme/widgets", 42, services, comment_id=None, instruction=None, shadow=False
        )
        assert "published" in result.output

    def test_comment_id_and_shadow_passed_through(self, mocker):
        _patch_common(mocker)
        mocker.patch("prpilot_cli.commands.review.build_services", return_value=MagicMock())
        handle = mocker.patch(
            "prpilot_cli.commands.review.handle_direct",
            return_value=_outcome(OutcomeStatus.SHADOW, response="Ship it."),
        )

        result = CliRunner().invoke(
            main, ["review", "--repo", "acme/widgets", "--pr", "42", "--comment-id", "77", "--shadow"]
        )

        assert result.exit_code == 0, result.output
        assert handle.call_args.kwargs["comment_id"] == 77
        assert handle.call_args.kwargs["shadow"] is True
        assert "Ship it." in result.output

    def test_model_flag_overrides_config(self, mocker):
        _patch_common(mocker, config=_make_config(anthropic_key="ant"))
        build = mocker.patch("prpilot_cli.commands.review.build_services", return_value=MagicMock())
        mocker.patch("prpilot_cli.commands.review.handle_direct", return_value=_outcome())

        CliRunner().invoke(main, ["review", "--repo", "acme/widgets", "--pr", "42", "--model", "anthropic"])

        assert build.call_args.args[0]["model"] == "anthropic"

    @pytest.mark.parametrize("status", [OutcomeStatus.INVOCATION_FAILED, OutcomeStatus.WRITE_FAILED])
    def test_failures_exit_non_zero(self, mocker, status):
        _patch_common(mocker)
        mocker.patch("prpilot_cli.commands.review.build_services", return_value=MagicMock())
        mocker.patch(
            "prpilot_cli.commands.review.handle_direct",
            return_value=_outcome(status, reason="InvocationTimeout", detail="timed out"),
        )

        result = CliRunner().invoke(main, ["review", "--repo", "acme/widgets", "--pr", "42"])
        assert result.exit_code == 1

    def test_skip_exits_zero(self, mocker):
        _patch_common(mocker)
        mocker.patch("prpilot_cli.commands.review.build_services", return_value=MagicMock())
        mocker.patch(
            "prpilot_cli.commands.review.handle_direct",
            return_value=_outcome(OutcomeStatus.ALREADY_FULFILLED, reason="AlreadyFulfilled"),
        )

        result = CliRunner().invoke(main, ["review", "--repo", "acme/widgets", "--pr", "42"])
        assert result.exit_code == 0
        assert "already_fulfilled" in result.output

    def test_ledger_closed_after_command(self, mocker):
        _, ledger = _patch_common(mocker)
        mocker.patch("prpilot_cli.commands.review.build_services", return_value=MagicMock())
        mocker.patch("prpilot_cli.commands.review.handle_direct", return_value=_outcome())

        CliRunner().invoke(main, ["review", "--repo", "acme/widgets", "--pr", "42"])
        ledger.close.assert_called_once()


class TestServeCommand:
    def test_starts_app_on_configured_port(self, mocker):
        _patch_common(mocker)
        mocker.patch("prpilot_core.reviewer.build_services", return_value=MagicMock())
        app = MagicMock()
        mocker.patch("prpilot_cli.server.create_app", return_value=app)

        result = CliRunner().invoke(main, ["serve", "--port", "8080"])

        assert result.exit_code == 0, result.output
        app.run.assert_called_once_with(host="0.0.0.0", port=8080, threaded=True)

    def test_warns_when_asana_not_configured(self, mocker):
        _patch_common(mocker)
        mocker.patch("prpilot_core.reviewer.build_services", return_value=MagicMock())
        mocker.patch("prpilot_cli.server.create_app", return_value=MagicMock())

        result = CliRunner().invoke(main, ["serve"])
        assert "ASANA_PERSONAL_ACCESS_TOKEN is not set" in result.output


class TestLedgerCommand:
    def test_empty_ledger(self, mocker):
        _patch_common(mocker)
        result = CliRunner().invoke(main, ["ledger"])
        assert result.exit_code == 0
        assert "The ledger is empty." in result.output

    def test_lists_entries(self, mocker):
        _, ledger = _patch_common(mocker)
        ledger.list_entries.return_value = [
            LedgerEntry("asana:task:1", "fulfilled", "2026-10-01T10:00:00+00:00", "2026-10-01T10:00:05+00:00"),
            LedgerEntry("github:acme/widgets#42", "admitted", "2026-10-01T09:00:00+00:00"),
        ]

        result = CliRunner().invoke(main, ["ledger", "--limit", "5"])

        assert result.exit_code == 0
        assert "asana:task:1" in result.output
        assert "fulfilled" in result.output
        ledger.list_entries.assert_called_once_with(limit=5)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class TestResolveGithubToken:
    def test_returns_env_var_when_set(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert resolve_github_token() == "env-token"

    def test_falls_back_to_gh_cli(self, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="gh-token\n")
            assert resolve_github_token() == "gh-token"

    def test_returns_none_when_gh_not_installed(self, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run", side_effect=FileNotFoundError):
            assert resolve_github_token() is None

    def test_returns_none_when_gh_times_out(self, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(cmd="gh", timeout=5)):
            assert resolve_github_token() is None

    def test_returns_none_when_gh_returns_error(self, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=1, stdout="")
            assert resolve_github_token() is None


class TestRequireCredentials:
    def test_passes_with_token_and_key(self):
        require_credentials(_make_config())

    def test_anthropic_needs_its_key(self):
        with pytest.raises(click.UsageError, match="ANTHROPIC_API_KEY"):
            require_credentials(_make_config(model="anthropic"))


# ---------------------------------------------------------------------------
# _build_ledger
# ---------------------------------------------------------------------------


class TestBuildLedger:
    def test_returns_sqlite_by_default(self, tmp_path):
        ledger = _build_ledger({"ledger_path": str(tmp_path / "ledger.db")})
        assert isinstance(ledger, SQLiteLedger)
        ledger.close()

    def test_returns_memory_ledger(self):
        assert isinstance(_build_ledger({"ledger": "memory"}), MemoryLedger)

    def test_redis_requires_url(self):
        with pytest.raises(click.UsageError, match="REDIS_URL"):
            _build_ledger({"ledger": "redis"})

    def test_redis_ledger_uses_configured_set(self, mocker):
        redis = pytest.importorskip("redis")
        from_url = mocker.patch.object(redis.Redis, "from_url", return_value=MagicMock())

        ledger = _build_ledger({"ledger": "redis", "redis_url": "redis://localhost:6379/0", "redis_key": "events"})

        from_url.assert_called_once_with("redis://localhost:6379/0", decode_responses=True)
        assert ledger._set == "events"

    def test_unknown_ledger_raises(self):
        with pytest.raises(click.UsageError, match="Unknown ledger"):
            _build_ledger({"ledger": "mongo"})
