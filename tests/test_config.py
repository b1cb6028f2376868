"""Tests for configuration schema and loader."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from autocommit.config.loader import (
    camel_to_snake,
    convert_keys,
    convert_to_camel,
    get_config_path,
    load_config,
    save_config,
    snake_to_camel,
)
from autocommit.config.schema import CommitConfig, Config, GitConfig, ScheduleConfig
from autocommit.errors import ConfigurationError


class TestScheduleConfig:
    """Test ScheduleConfig."""

    def test_defaults(self):
        """Test the schedule defaults."""
        config = ScheduleConfig()
        assert config.commit_time == "0 18 * * *"
        assert config.full_cron is False
        assert config.state_path == Path.home() / ".autocommit" / "scheduler-state.json"

    def test_custom_time(self):
        """Test a custom commit time is kept."""
        assert ScheduleConfig(commit_time="30 7 * * 1-5").commit_time == "30 7 * * 1-5"

    @pytest.mark.parametrize("expression", ["", "0 24 * * *", "every day", "*/5 * * * *"])
    def test_invalid_time(self, expression: str):
        """Test invalid commit times fail validation."""
        with pytest.raises(ValidationError):
            ScheduleConfig(commit_time=expression)


class TestCommitConfig:
    """Test CommitConfig."""

    def test_defaults(self):
        """Test the commit defaults."""
        config = CommitConfig()
        assert config.message_template == "chore: daily auto-commit - {summary}"
        assert config.max_message_length == 72
        assert config.retry_attempts == 3
        assert config.retry_delay_ms == 5000
        assert config.exclude_patterns == []

    @pytest.mark.parametrize("field,value", [
        ("message_template", "short"),
        ("message_template", "x" * 201),
        ("retry_attempts", 0),
        ("retry_attempts", 11),
        ("retry_delay_ms", -1),
        ("max_message_length", 10),
    ])
    def test_bounds(self, field: str, value):
        """Test out-of-range commit settings fail validation."""
        with pytest.raises(ValidationError):
            CommitConfig(**{field: value})


class TestConfig:
    """Test root Config."""

    def test_defaults(self):
        """Test the root defaults."""
        config = Config()
        assert config.enabled is True
        assert config.log_level == "info"
        assert config.repository == Path(".").resolve()
        assert isinstance(config.git, GitConfig)
        assert config.git.timeout_s == 30.0

    def test_log_level_case_insensitive(self):
        """Test log levels are normalized to lower case."""
        assert Config(log_level="DEBUG").log_level == "debug"

    def test_invalid_log_level(self):
        """Test an unknown log level fails validation."""
        with pytest.raises(ValidationError):
            Config(log_level="verbose")

    def test_repository_expands_user(self):
        """Test ~ in the repository path is expanded."""
        config = Config(repository_path="~/project")
        assert config.repository == (Path.home() / "project").resolve()

    def test_env_override(self, monkeypatch):
        """Test AUTOCOMMIT_* variables beat init values."""
        monkeypatch.setenv("AUTOCOMMIT_ENABLED", "false")
        monkeypatch.setenv("AUTOCOMMIT_LOG_LEVEL", "error")

        config = Config(enabled=True)

        assert config.enabled is False
        assert config.log_level == "error"

    def test_nested_env_override(self, monkeypatch):
        """Test double-underscore variables reach nested sections."""
        monkeypatch.setenv("AUTOCOMMIT_SCHEDULE__COMMIT_TIME", "15 9 * * *")
        config = Config()
        assert config.schedule.commit_time == "15 9 * * *"


class TestKeyConversion:
    """Test camelCase <-> snake_case conversion."""

    def test_camel_to_snake(self):
        """Test camelCase keys convert to snake_case."""
        assert camel_to_snake("commitTime") == "commit_time"
        assert camel_to_snake("retryDelayMs") == "retry_delay_ms"
        assert camel_to_snake("enabled") == "enabled"

    def test_snake_to_camel(self):
        """Test snake_case keys convert to camelCase."""
        assert snake_to_camel("commit_time") == "commitTime"
        assert snake_to_camel("timeout_s") == "timeoutS"

    def test_nested(self):
        """Test nested dicts convert both ways."""
        data = {"schedule": {"commitTime": "0 9 * * *"}, "repositoryPath": "/repo"}
        assert convert_keys(data) == {"schedule": {"commit_time": "0 9 * * *"}, "repository_path": "/repo"}
        assert convert_to_camel(convert_keys(data)) == data

    def test_exclude_patterns_kept_verbatim(self):
        """Test list values are not treated as keys."""
        data = {"commit": {"excludePatterns": ["someFile.log"]}}
        assert convert_keys(data) == {"commit": {"exclude_patterns": ["someFile.log"]}}


class TestLoader:
    """Test loading and saving config files."""

    def test_missing_file_yields_defaults(self, tmp_path: Path):
        """Test a missing config file gives the defaults."""
        config = load_config(tmp_path / "missing.json")
        assert config.schedule.commit_time == "0 18 * * *"

    def test_load_camel_case(self, tmp_path: Path):
        """Test loading a camelCase config file."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "enabled": False,
            "repositoryPath": "/srv/repo",
            "schedule": {"commitTime": "45 22 * * *"},
            "commit": {"retryAttempts": 5, "excludePatterns": ["*.log"]},
        }))

        config = load_config(path)

        assert config.enabled is False
        assert config.repository_path == "/srv/repo"
        assert config.schedule.commit_time == "45 22 * * *"
        assert config.commit.retry_attempts == 5
        assert config.commit.exclude_patterns == ["*.log"]

    def test_invalid_json(self, tmp_path: Path):
        """Test malformed JSON raises ConfigurationError."""
        path = tmp_path / "config.json"
        path.write_text("{broken")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_not_an_object(self, tmp_path: Path):
        """Test a non-object document raises ConfigurationError."""
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigurationError, match="JSON object"):
            load_config(path)

    def test_invalid_schedule(self, tmp_path: Path):
        """Test an invalid schedule in the file raises ConfigurationError."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"schedule": {"commitTime": "0 25 * * *"}}))
        with pytest.raises(ConfigurationError, match="validation"):
            load_config(path)

    def test_save_round_trip(self, tmp_path: Path):
        """Test a saved config loads back equal."""
        path = tmp_path / "nested" / "config.json"
        config = Config(
            repository_path="/srv/repo",
            schedule={"commit_time": "0 7 * * *"},
            commit={"exclude_patterns": ["dist/"]},
        )

        save_config(config, path)

        data = json.loads(path.read_text())
        assert data["schedule"]["commitTime"] == "0 7 * * *"
        assert data["commit"]["excludePatterns"] == ["dist/"]
        assert data["repositoryPath"] == "/srv/repo"
        assert load_config(path) == config

    def test_env_beats_file(self, tmp_path: Path, monkeypatch):
        """Test environment variables beat the config file."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"enabled": True}))
        monkeypatch.setenv("AUTOCOMMIT_ENABLED", "0")

        assert load_config(path).enabled is False

    def test_config_path_override(self, tmp_path: Path, monkeypatch):
        """Test AUTOCOMMIT_CONFIG picks the config path."""
        monkeypatch.setenv("AUTOCOMMIT_CONFIG", str(tmp_path / "custom.json"))
        assert get_config_path() == tmp_path / "custom.json"
