"""Unit tests for HarnessSettings and its loaders."""

from __future__ import annotations

from pathlib import Path

import pytest

from spanner_chaos.config.settings import DotenvSettingsLoader, EnvSettingsLoader, HarnessSettings
from spanner_chaos.config.validation import ConfigError, InvalidSettingValueError
from spanner_chaos.registry import DefaultOutcome


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "CHAOS_HOST",
        "CHAOS_MAX_WORKERS",
        "CHAOS_ABORT_PROBABILITY",
        "CHAOS_DEFAULT_OUTCOME",
        "CHAOS_SEED",
        "CHAOS_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Defaults & validation
# ---------------------------------------------------------------------------


class TestHarnessSettings:
    def test_defaults(self) -> None:
        s = HarnessSettings()
        assert s.host == "localhost"
        assert s.abort_probability == 0.001
        assert s.default_outcome_policy is DefaultOutcome.UNIMPLEMENTED
        assert s.seed is None
        assert s.max_transaction_attempts == 50

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"abort_probability": 1.1},
            {"abort_probability": -0.5},
            {"max_workers": 0},
            {"max_transaction_attempts": 0},
            {"retry_initial_backoff": 0.5, "retry_max_backoff": 0.1},
            {"shutdown_timeout": 0},
            {"default_outcome": "guess"},
            {"log_level": "CHATTY"},
        ],
    )
    def test_rejects_invalid_values(self, kwargs: dict) -> None:
        with pytest.raises(InvalidSettingValueError):
            HarnessSettings(**kwargs)

    def test_invalid_value_is_config_error(self) -> None:
        with pytest.raises(ConfigError):
            HarnessSettings(abort_probability=2.0)


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------


class TestEnvLoading:
    def test_reads_prefixed_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHAOS_ABORT_PROBABILITY", "0.25")
        monkeypatch.setenv("CHAOS_MAX_WORKERS", "4")
        monkeypatch.setenv("CHAOS_DEFAULT_OUTCOME", "empty_result")
        s = EnvSettingsLoader().load(HarnessSettings)
        assert s.abort_probability == 0.25
        assert s.max_workers == 4
        assert s.default_outcome_policy is DefaultOutcome.EMPTY_RESULT

    def test_optional_seed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHAOS_SEED", "99")
        assert EnvSettingsLoader().load(HarnessSettings).seed == 99
        monkeypatch.setenv("CHAOS_SEED", "none")
        assert EnvSettingsLoader().load(HarnessSettings).seed is None

    def test_unparseable_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHAOS_MAX_WORKERS", "many")
        with pytest.raises(InvalidSettingValueError):
            EnvSettingsLoader().load(HarnessSettings)

    def test_out_of_range_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHAOS_ABORT_PROBABILITY", "3")
        with pytest.raises(ConfigError):
            EnvSettingsLoader().load(HarnessSettings)

    def test_dotenv_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("CHAOS_HOST=127.0.0.1\nCHAOS_LOG_LEVEL=debug\n")
        # Registered so the values loaded from the file are removed afterwards.
        monkeypatch.setenv("CHAOS_HOST", "placeholder")
        monkeypatch.setenv("CHAOS_LOG_LEVEL", "INFO")
        s = DotenvSettingsLoader(str(env_file), override=True).load(HarnessSettings)
        assert s.host == "127.0.0.1"
        assert s.log_level == "debug"
