from bharatshop.config.settings import DEFAULT_GEMINI_MODEL, Settings

class TestSettingsFromEnv:

    def test_defaults(self, monkeypatch):
        for name in ["GEMINI_API_KEY", "GEMINI_MODEL", "BHARATSHOP_AI_ENABLED",
                     "BHARATSHOP_LOCAL_TOP_K", "BHARATSHOP_SERVICE_TOP_K", "GEMINI_TIMEOUT_SECONDS"]:
            monkeypatch.delenv(name, raising=False)
        settings = Settings.from_env()
        assert settings.gemini_api_key is None
        assert settings.gemini_model == DEFAULT_GEMINI_MODEL
        assert settings.ai_enabled is False
        assert (settings.local_top_k, settings.service_top_k) == (4, 6)

    def test_key_enables_ai(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "abc")
        monkeypatch.delenv("BHARATSHOP_AI_ENABLED", raising=False)
        assert Settings.from_env().ai_enabled is True

    def test_ai_can_be_switched_off(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "abc")
        monkeypatch.setenv("BHARATSHOP_AI_ENABLED", "false")
        assert Settings.from_env().ai_enabled is False

    def test_invalid_numbers_fall_back(self, monkeypatch):
        monkeypatch.setenv("BHARATSHOP_LOCAL_TOP_K", "lots")
        monkeypatch.setenv("BHARATSHOP_SERVICE_TOP_K", "-2")
        monkeypatch.setenv("GEMINI_TIMEOUT_SECONDS", "2.5")
        settings = Settings.from_env()
        assert settings.local_top_k == 4
        assert settings.service_top_k == 6
        assert settings.gemini_timeout_seconds == 2.5

    def test_blank_key_counts_as_missing(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "  ")
        monkeypatch.delenv("BHARATSHOP_AI_ENABLED", raising=False)
        settings = Settings.from_env()
        assert settings.gemini_api_key is None
        assert settings.ai_enabled is False

    def test_invalid_switch_follows_key(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "abc")
        monkeypatch.setenv("BHARATSHOP_AI_ENABLED", "maybe")
        assert Settings.from_env().ai_enabled is True

    def test_keyword_arguments_override_environment(self, monkeypatch):
        monkeypatch.setenv("BHARATSHOP_LOCAL_TOP_K", "9")
        settings = Settings(gemini_api_key="k", local_top_k=2)
        assert settings.local_top_k == 2
        assert settings.ai_enabled is True
