"""Shared fixtures: keep every test away from the real ~/.smart-router."""

import pytest

PROVIDER_ENV_VARS = (
    "ANTHROPIC_API_KEY",
    "GOOGLE_API_KEY",
    "GROQ_API_KEY",
    "OPENAI_API_KEY",
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point HOME at a temp dir and clear provider keys."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for var in PROVIDER_ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    import smart_router.ledger as ledger_module
    monkeypatch.setattr(ledger_module, "_ledger", None)
    return home


@pytest.fixture
def ledger_path(tmp_path):
    return tmp_path / "state" / "ledger.json"


def make_model(model_id, tier, provider="openai", input_price=1.0, output_price=1.0, **kw):
    """Small ModelDescriptor factory for hand-built catalogs."""
    from smart_router.routing import ModelDescriptor, Provider, Tier

    return ModelDescriptor(
        id=model_id,
        display_name=kw.pop("display_name", model_id.upper()),
        provider=Provider.parse(provider),
        input_price_per_million=input_price,
        output_price_per_million=output_price,
        context_window=kw.pop("context_window", 100_000),
        tier=Tier.parse(tier),
        **kw,
    )


@pytest.fixture
def model_factory():
    return make_model
