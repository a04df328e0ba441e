from shopmata.config import AIConfig, Settings


def test_ai_config_defaults_model_per_provider():
    assert AIConfig(provider="OpenAI").model == "gpt-4o"
    assert AIConfig(provider="anthropic", model="claude-x").model == "claude-x"


def test_ai_config_from_env(monkeypatch):
    monkeypatch.setenv("SHOPMATA_AI_PROVIDER", "openai")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("SHOPMATA_AI_TEMPERATURE", "0.2")
    monkeypatch.delenv("SHOPMATA_AI_MODEL", raising=False)

    config = AIConfig.from_env()

    assert config.provider == "openai"
    assert config.api_key == "sk-test"
    assert config.model == "gpt-4o"
    assert config.temperature == 0.2


def test_store_overrides_without_ai_settings_keep_global_config():
    config = AIConfig(provider="anthropic", api_key="global")
    assert config.with_store_overrides({}) is config
    assert config.with_store_overrides(None) is config


def test_store_override_switching_provider_resets_model_and_key():
    config = AIConfig(provider="anthropic", api_key="global", model="claude-x")

    switched = config.with_store_overrides({"ai": {"provider": "openai"}})

    assert switched.provider == "openai"
    assert switched.model == "gpt-4o"
    assert switched.api_key is None
    assert config.provider == "anthropic"


def test_store_override_keeps_global_key_for_same_provider():
    config = AIConfig(provider="anthropic", api_key="global", model="claude-x")

    overridden = config.with_store_overrides({"ai": {"temperature": 0.1, "max_tokens": 500}})

    assert overridden.api_key == "global"
    assert overridden.model == "claude-x"
    assert overridden.temperature == 0.1
    assert overridden.max_tokens == 500


def test_to_dict_hides_api_key():
    data = AIConfig(api_key="secret").to_dict()
    assert "api_key" not in data
    assert data["has_api_key"] is True


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("SHOPMATA_DATABASE_URL", "sqlite:///tmp.db")
    monkeypatch.setenv("SHOPMATA_MAX_TOOL_ROUNDS", "3")
    monkeypatch.setenv("SHOPMATA_LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.database_url == "sqlite:///tmp.db"
    assert settings.max_tool_rounds == 3
    assert settings.log_level == "DEBUG"
    assert settings.chat_history_limit == 10
