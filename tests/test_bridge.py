"""Tests for settings, API key lookup and the completion bridge."""

import logging

import pytest


# ── Fixtures ──────────────────────────────────────────────────

class FakeBackend:
    """Records calls and returns canned usage."""

    def __init__(self, input_tokens=1_000, output_tokens=500, content="ok"):
        self.calls = []
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens
        self.content = content

    def __call__(self, messages, model):
        from smart_router.bridge import BackendResult

        self.calls.append((list(messages), model.id))
        return BackendResult(self.content, self.input_tokens, self.output_tokens)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def settings(ledger_path):
    from smart_router.config import RouterSettings
    return RouterSettings(ledger_path=ledger_path)


@pytest.fixture
def ledger(ledger_path):
    from smart_router.ledger import CostLedger
    return CostLedger(ledger_path)


ALL_KEYS = {"anthropic": "a", "google": "g", "groq": "q", "openai": "o"}


# ═══════════════════════════════════════════════════════════════
# 1. CONFIGURATION
# ═══════════════════════════════════════════════════════════════

class TestSettings:
    """YAML settings file."""

    def test_defaults_without_file(self):
        from smart_router.config import get_settings
        from smart_router.routing import Tier

        settings = get_settings()
        assert settings.default_tier == Tier.MEDIUM
        assert settings.cost_tracking is True
        assert settings.enable_logging is True
        assert settings.ledger_path is None
        assert settings.catalog_path is None

    def test_config_dir_under_home(self, isolated_home):
        from smart_router.config import get_config_dir, get_config_path

        assert get_config_dir() == isolated_home / ".smart-router"
        assert get_config_path().name == "config.yaml"

    def test_save_and_load(self):
        from smart_router.config import get_settings, load_config, save_config
        from smart_router.routing import Tier

        save_config({"default_tier": "complex", "cost_tracking": False})
        assert load_config()["default_tier"] == "complex"

        settings = get_settings()
        assert settings.default_tier == Tier.COMPLEX
        assert settings.cost_tracking is False

    def test_round_trip(self, tmp_path):
        from smart_router.config import RouterSettings
        from smart_router.routing import Tier

        settings = RouterSettings(
            default_tier=Tier.SIMPLE,
            enable_logging=False,
            ledger_path=tmp_path / "l.json",
            api_keys={"groq": "secret"},
        )
        assert RouterSettings.from_dict(settings.to_dict()) == settings

    def test_bad_default_tier(self):
        from smart_router.config import get_settings, save_config
        from smart_router.errors import InvalidInput

        save_config({"default_tier": "ultra"})
        with pytest.raises(InvalidInput):
            get_settings()

    def test_invalid_yaml(self, isolated_home):
        from smart_router.config import get_settings, load_config
        from smart_router.errors import InvalidInput

        path = isolated_home / ".smart-router" / "config.yaml"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("default_tier: [unclosed\n")

        with pytest.raises(InvalidInput, match="not valid YAML"):
            load_config()
        with pytest.raises(InvalidInput):
            get_settings()

    def test_non_mapping_yaml(self, isolated_home):
        from smart_router.config import get_settings
        from smart_router.errors import InvalidInput

        path = isolated_home / ".smart-router" / "config.yaml"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("- a\n- b\n")

        with pytest.raises(InvalidInput, match="must be a mapping"):
            get_settings()

    def test_malformed_field(self):
        from smart_router.config import get_settings, save_config
        from smart_router.errors import InvalidInput

        save_config({"api_keys": ["openai"]})
        with pytest.raises(InvalidInput, match="api_keys"):
            get_settings()

    def test_bad_config_surfaces_from_global_ledger(self):
        from smart_router.config import get_config_path
        from smart_router.errors import InvalidInput
        from smart_router.ledger import get_cost_ledger

        get_config_path().write_text("- a\n")
        with pytest.raises(InvalidInput):
            get_cost_ledger()

    def test_catalog_path(self, tmp_path):
        import yaml
        from smart_router.config import RouterSettings, get_catalog
        from smart_router.routing import DEFAULT_CATALOG

        path = tmp_path / "models.yaml"
        path.write_text(yaml.safe_dump(
            [DEFAULT_CATALOG.get("gpt-4o-mini").to_dict()]))

        assert get_catalog(RouterSettings()) is DEFAULT_CATALOG
        custom = get_catalog(RouterSettings(catalog_path=path))
        assert [m.id for m in custom] == ["gpt-4o-mini"]


class TestApiKeys:
    """Environment first, then config file."""

    def test_env_var(self, monkeypatch):
        from smart_router.config import RouterSettings, get_api_key

        monkeypatch.setenv("OPENAI_API_KEY", "from-env")
        assert get_api_key("openai", RouterSettings()) == "from-env"

    def test_env_beats_config(self, monkeypatch):
        from smart_router.config import RouterSettings, get_api_key
        from smart_router.routing import Provider

        monkeypatch.setenv("GROQ_API_KEY", "from-env")
        settings = RouterSettings(api_keys={"groq": "from-config"})
        assert get_api_key(Provider.GROQ, settings) == "from-env"

    def test_config_fallback(self):
        from smart_router.config import RouterSettings, get_api_key

        settings = RouterSettings(api_keys={"google": "from-config"})
        assert get_api_key("google", settings) == "from-config"
        assert get_api_key("anthropic", settings) is None

    def test_unknown_provider(self):
        from smart_router.config import RouterSettings, get_api_key
        from smart_router.errors import UnknownProvider

        with pytest.raises(UnknownProvider):
            get_api_key("mistral", RouterSettings())

    def test_configured_providers(self, monkeypatch):
        from smart_router.config import RouterSettings, configured_providers
        from smart_router.routing import Provider

        monkeypatch.setenv("ANTHROPIC_API_KEY", "x")
        settings = RouterSettings(api_keys={"openai": "y"})
        assert configured_providers(settings) == [Provider.ANTHROPIC, Provider.OPENAI]


# ═══════════════════════════════════════════════════════════════
# 2. COMPLETION BRIDGE
# ═══════════════════════════════════════════════════════════════

class TestCompletionBridge:
    """Route, dispatch and account."""

    def test_auto_routes_and_tracks(self, backend, settings, ledger):
        from smart_router.bridge import CompletionBridge
        from smart_router.routing import Message, Tier

        bridge = CompletionBridge(backend, ledger=ledger, settings=settings,
                                  api_keys=ALL_KEYS)
        response = bridge.complete([Message("user", "What is 2+2?")])

        assert response.content == "ok"
        assert response.tier == Tier.SIMPLE
        assert response.model.id == "gemini-1.5-flash-latest"
        assert backend.calls[0][1] == "gemini-1.5-flash-latest"
        assert response.usage.input_tokens == 1_000
        assert response.usage.cost == pytest.approx(
            response.model.calculate_cost(1_000, 500))
        assert response.duration_ms >= 0

        stats = ledger.snapshot()
        assert stats.total_requests == 1
        assert stats.cost_by_tier[Tier.SIMPLE] == pytest.approx(response.usage.cost)

    def test_explicit_tier(self, backend, settings, ledger):
        from smart_router.bridge import CompletionBridge

        bridge = CompletionBridge(backend, ledger=ledger, settings=settings,
                                  api_keys=ALL_KEYS)
        response = bridge.complete(
            [{"role": "user", "content": "hi"}], "smart-router/reasoning")
        assert response.model.id == "deepseek-reasoner"

    def test_explicit_model(self, backend, settings, ledger):
        from smart_router.bridge import CompletionBridge
        from smart_router.routing import Tier

        bridge = CompletionBridge(backend, ledger=ledger, settings=settings,
                                  api_keys=ALL_KEYS)
        response = bridge.complete([{"role": "user", "content": "hi"}], "claude-sonnet-4.5")
        assert response.model.id == "claude-sonnet-4.5"
        assert ledger.snapshot().cost_by_tier[Tier.COMPLEX] > 0

    def test_unknown_model(self, backend, settings, ledger):
        from smart_router.bridge import CompletionBridge
        from smart_router.errors import UnknownModel

        bridge = CompletionBridge(backend, ledger=ledger, settings=settings,
                                  api_keys=ALL_KEYS)
        with pytest.raises(UnknownModel):
            bridge.complete([{"role": "user", "content": "hi"}], "gpt-99")
        assert backend.calls == []

    def test_missing_provider_key(self, backend, settings, ledger):
        from smart_router.bridge import CompletionBridge
        from smart_router.errors import ProviderNotConfigured

        bridge = CompletionBridge(backend, ledger=ledger, settings=settings,
                                  api_keys={"openai": "o"})
        with pytest.raises(ProviderNotConfigured, match="GOOGLE_API_KEY") as exc:
            bridge.complete([{"role": "user", "content": "What is 2+2?"}])

        assert exc.value.context["provider"] == "google"
        assert backend.calls == []
        assert ledger.snapshot().total_requests == 0

    def test_keys_from_environment(self, backend, settings, ledger, monkeypatch):
        from smart_router.bridge import CompletionBridge

        monkeypatch.setenv("GOOGLE_API_KEY", "g")
        bridge = CompletionBridge(backend, ledger=ledger, settings=settings)
        assert bridge.has_provider("google")
        assert not bridge.has_provider("groq")
        bridge.complete([{"role": "user", "content": "What is 2+2?"}])
        assert len(backend.calls) == 1

    def test_cost_tracking_disabled(self, backend, ledger_path):
        from smart_router.bridge import CompletionBridge
        from smart_router.config import RouterSettings

        settings = RouterSettings(cost_tracking=False, ledger_path=ledger_path)
        bridge = CompletionBridge(backend, settings=settings, api_keys=ALL_KEYS)
        response = bridge.complete([{"role": "user", "content": "What is 2+2?"}])

        assert bridge.ledger is None
        assert response.usage.cost > 0
        assert not ledger_path.exists()

    def test_default_tier_from_settings(self, backend, ledger):
        from smart_router.bridge import CompletionBridge
        from smart_router.config import RouterSettings
        from smart_router.routing import Tier

        settings = RouterSettings(default_tier=Tier.COMPLEX)
        bridge = CompletionBridge(backend, ledger=ledger, settings=settings,
                                  api_keys=ALL_KEYS)
        response = bridge.complete(
            [{"role": "user", "content": "The weather today was pleasant. " * 8}])
        assert response.tier == Tier.COMPLEX

    def test_logs_explanation(self, backend, settings, ledger, caplog):
        from smart_router.bridge import CompletionBridge

        bridge = CompletionBridge(backend, ledger=ledger, settings=settings,
                                  api_keys=ALL_KEYS)
        with caplog.at_level(logging.INFO, logger="smart_router.bridge"):
            bridge.complete([{"role": "user", "content": "What is 2+2?"}])
            bridge.complete([{"role": "user", "content": "hi"}], "medium")

        assert "Routing Decision:" in caplog.text
        assert "Using MEDIUM tier: GPT-4o Mini" in caplog.text
        assert "Completed in" in caplog.text

    def test_logging_disabled(self, backend, ledger, caplog):
        from smart_router.bridge import CompletionBridge
        from smart_router.config import RouterSettings

        bridge = CompletionBridge(backend, ledger=ledger,
                                  settings=RouterSettings(enable_logging=False),
                                  api_keys=ALL_KEYS)
        with caplog.at_level(logging.INFO, logger="smart_router.bridge"):
            bridge.complete([{"role": "user", "content": "What is 2+2?"}])
        assert caplog.text == ""

    def test_response_to_dict(self, backend, settings, ledger):
        from smart_router.bridge import CompletionBridge

        bridge = CompletionBridge(backend, ledger=ledger, settings=settings,
                                  api_keys=ALL_KEYS)
        d = bridge.complete([{"role": "user", "content": "What is 2+2?"}]).to_dict()
        assert d["model"] == "gemini-1.5-flash-latest"
        assert d["tier"] == "simple"
        assert d["usage"]["output_tokens"] == 500
