"""Unit tests for VoiceAgentConfig and the typed settings views."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from voiceagent.config import VoiceAgentConfig
from voiceagent.config.settings import AudioSettings, CommandSettings


def write_config(directory, data):
    path = Path(directory) / "voiceagent.yaml"
    path.write_text(yaml.safe_dump(data), encoding='utf-8')
    return path


@pytest.mark.unit
class TestVoiceAgentConfig:
    """Test cases for the YAML loader."""

    def test_defaults_without_file(self):
        """Test an absent config path yields default settings."""
        config = VoiceAgentConfig()

        assert config.get('audio.sample_rate') is None
        audio = config.audio_settings()
        assert audio.sample_rate == 16000
        assert audio.loop_seconds == 30
        assert audio.pre_roll_seconds == 0.5
        assert audio.max_record_seconds == 10
        assert audio.min_record_seconds == 0.25
        commands = config.command_settings()
        assert commands.model == "gpt-4o-mini"
        assert commands.max_tokens == 4
        assert commands.cancel_stale is False
        assert config.input_settings().record_key == "v"

    def test_missing_file(self, temp_data_dir):
        """Test a missing config file is an error."""
        with pytest.raises(FileNotFoundError):
            VoiceAgentConfig(str(Path(temp_data_dir) / "missing.yaml"))

    def test_empty_file(self, temp_data_dir):
        """Test an empty config file is rejected."""
        path = Path(temp_data_dir) / "empty.yaml"
        path.write_text("", encoding='utf-8')

        with pytest.raises(ValueError, match="empty"):
            VoiceAgentConfig(str(path))

    def test_invalid_yaml(self, temp_data_dir):
        """Test broken YAML is reported as ValueError."""
        path = Path(temp_data_dir) / "broken.yaml"
        path.write_text("audio: [unclosed", encoding='utf-8')

        with pytest.raises(ValueError, match="Invalid YAML"):
            VoiceAgentConfig(str(path))

    def test_dot_notation(self, temp_data_dir):
        """Test nested values are reachable with dotted keys."""
        path = write_config(temp_data_dir, {"audio": {"sample_rate": 48000}, "commands": {"cancel_stale": True}})
        config = VoiceAgentConfig(str(path))

        assert config.get('audio.sample_rate') == 48000
        assert config.get('audio.missing', 'fallback') == 'fallback'
        assert config.command_settings().cancel_stale is True

        config.set('input.tick_seconds', 0.1)
        assert config.input_settings().tick_seconds == 0.1

    def test_relative_paths_resolved(self, temp_data_dir):
        """Test relative paths are anchored at the config file directory."""
        path = write_config(temp_data_dir, {
            "logging": {"file_path": "logs/voiceagent.log"},
            "audio": {"clip_directory": "clips"},
        })
        config = VoiceAgentConfig(str(path))

        assert config.get('logging.file_path') == str(Path(temp_data_dir) / "logs/voiceagent.log")
        assert config.get('audio.clip_directory') == str(Path(temp_data_dir) / "clips")

    def test_openai_key_from_environment(self, monkeypatch):
        """Test the key falls back to OPENAI_API_KEY."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        config = VoiceAgentConfig()

        assert config.get_openai_api_key() == "sk-env"
        config.set('openai.api_key', "sk-file")
        assert config.get_openai_api_key() == "sk-file"

    def test_google_credentials_required(self, temp_data_dir):
        """Test missing Google credentials are reported."""
        config = VoiceAgentConfig()
        with pytest.raises(ValueError):
            config.get_google_credentials_path()

        config.set('google_cloud.credentials_path', str(Path(temp_data_dir) / "nope.json"))
        with pytest.raises(FileNotFoundError):
            config.get_google_credentials_path()


@pytest.mark.unit
class TestSettings:
    """Test cases for pydantic settings validation."""

    def test_min_longer_than_max_rejected(self):
        """Test inconsistent duration limits fail validation."""
        with pytest.raises(ValidationError):
            AudioSettings(min_record_seconds=5, max_record_seconds=2)

    def test_max_longer_than_loop_rejected(self):
        """Test a clip cannot be longer than the ring."""
        with pytest.raises(ValidationError):
            AudioSettings(loop_seconds=5, max_record_seconds=10)

    def test_non_positive_rate_rejected(self):
        """Test the sample rate must be positive."""
        with pytest.raises(ValidationError):
            AudioSettings(sample_rate=0)

    def test_keyword_actions_normalized(self):
        """Test keyword overrides are keyed by upper-case action names."""
        settings = CommandSettings(keywords={"stop ": ["whoa"], "Follow": ["heel"]})

        assert settings.keywords == {"STOP": ["whoa"], "FOLLOW": ["heel"]}

    def test_unknown_keyword_action_rejected(self):
        """Test overrides for unknown actions fail validation."""
        with pytest.raises(ValidationError):
            CommandSettings(keywords={"DANCE": ["boogie"]})
