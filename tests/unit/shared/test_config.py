"""
Tests for settings loading from YAML and the environment.
"""

from edulog.shared.config import EduLogSettings, LLMConfig


def test_defaults_without_yaml(tmp_path):
    loaded = EduLogSettings.load_from_yaml(tmp_path / "missing.yaml")

    assert loaded.timezone == "Asia/Seoul"
    assert loaded.record_type == "관찰"
    assert loaded.default_class_name == "2-1"
    assert loaded.llm.provider == "gemini"
    assert loaded.http.timeout is None


def test_yaml_sections_applied(tmp_path):
    config_path = tmp_path / "edulog.yaml"
    config_path.write_text(
        "edulog:\n"
        "  timezone: UTC\n"
        "  storage_path: /tmp/other.sqlite\n"
        "  llm:\n"
        "    provider: openai\n"
        "    model: gpt-4o-mini\n"
        "  http:\n"
        "    timeout: 12.5\n",
        encoding="utf-8",
    )

    loaded = EduLogSettings.load_from_yaml(config_path)

    assert loaded.timezone == "UTC"
    assert str(loaded.storage_path) == "/tmp/other.sqlite"
    assert loaded.llm.provider == "openai"
    assert loaded.llm.model == "gpt-4o-mini"
    assert loaded.http.timeout == 12.5


def test_api_key_env_aliases(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("API_KEY", "from-api-key-var")
    assert LLMConfig().gemini_api_key == "from-api-key-var"

    monkeypatch.setenv("GEMINI_API_KEY", "from-gemini-var")
    assert LLMConfig().gemini_api_key == "from-gemini-var"
