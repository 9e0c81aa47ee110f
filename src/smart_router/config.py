"""Configuration for the smart router.

Settings live in ~/.smart-router/config.yaml so callers don't need flags
for every run:

    default_tier: medium        # tier used for ambiguous prompts
    cost_tracking: true         # account completed calls in the ledger
    enable_logging: true        # log routing explanations
    ledger_path: ~/.smart-router/ledger.json
    catalog_path: ~/models.yaml # optional, replaces the built-in catalog
    api_keys:
      openai: sk-...

API keys are read from the environment first, then from the config file.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from smart_router.errors import InvalidInput, SmartRouterError
from smart_router.routing.catalog import DEFAULT_CATALOG, ModelCatalog, Provider, Tier


# Provider configurations
PROVIDERS: dict[Provider, dict[str, str]] = {
    Provider.ANTHROPIC: {
        "name": "Anthropic",
        "env_var": "ANTHROPIC_API_KEY",
        "docs_url": "https://console.anthropic.com/",
    },
    Provider.GOOGLE: {
        "name": "Google",
        "env_var": "GOOGLE_API_KEY",
        "docs_url": "https://ai.google.dev/",
    },
    Provider.GROQ: {
        "name": "Groq",
        "env_var": "GROQ_API_KEY",
        "docs_url": "https://console.groq.com/",
    },
    Provider.OPENAI: {
        "name": "OpenAI",
        "env_var": "OPENAI_API_KEY",
        "docs_url": "https://platform.openai.com/",
    },
}


def _api_keys(d: dict[str, Any]) -> dict[str, Any]:
    keys = d.get("api_keys") or {}
    if not isinstance(keys, dict):
        raise TypeError(f"api_keys must be a mapping, got {type(keys).__name__}")
    return keys


@dataclass
class RouterSettings:
    """Resolved router settings."""
    default_tier: Tier = Tier.MEDIUM
    cost_tracking: bool = True
    enable_logging: bool = True
    ledger_path: Path | None = None
    catalog_path: Path | None = None
    api_keys: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "RouterSettings":
        ledger_path = d.get("ledger_path")
        catalog_path = d.get("catalog_path")
        return cls(
            default_tier=Tier.parse(d.get("default_tier", Tier.MEDIUM)),
            cost_tracking=bool(d.get("cost_tracking", True)),
            enable_logging=bool(d.get("enable_logging", True)),
            ledger_path=Path(ledger_path).expanduser() if ledger_path else None,
            catalog_path=Path(catalog_path).expanduser() if catalog_path else None,
            api_keys={str(k).lower(): str(v)
                      for k, v in _api_keys(d).items()},
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "default_tier": self.default_tier.value,
            "cost_tracking": self.cost_tracking,
            "enable_logging": self.enable_logging,
        }
        if self.ledger_path:
            d["ledger_path"] = str(self.ledger_path)
        if self.catalog_path:
            d["catalog_path"] = str(self.catalog_path)
        if self.api_keys:
            d["api_keys"] = dict(self.api_keys)
        return d


def get_config_dir() -> Path:
    """Get the smart router config directory."""
    config_dir = Path.home() / ".smart-router"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Get the config file path."""
    return get_config_dir() / "config.yaml"


def load_config() -> dict[str, Any]:
    """Load the raw configuration mapping.

    Raises:
        InvalidInput: the file is not valid YAML or not a mapping.
    """
    config_path = get_config_path()
    if not config_path.exists():
        return {}

    try:
        with open(config_path) as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InvalidInput(
            f"Config file {config_path} is not valid YAML: {e}",
            context={"path": str(config_path)},
        ) from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise InvalidInput(
            f"Config file {config_path} must be a mapping, "
            f"got {type(config).__name__}",
            context={"path": str(config_path)},
        )
    return config


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to file."""
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.dump(config, f, default_flow_style=False)


def get_settings() -> RouterSettings:
    """Load settings from the config file.

    Raises:
        InvalidInput: the file is unreadable as settings.
    """
    config = load_config()
    try:
        return RouterSettings.from_dict(config)
    except SmartRouterError:
        raise
    except (TypeError, ValueError, AttributeError) as e:
        raise InvalidInput(
            f"Invalid settings in {get_config_path()}: {e}") from e


def get_catalog(settings: RouterSettings | None = None) -> ModelCatalog:
    """The configured catalog, or the built-in one."""
    settings = settings or get_settings()
    if settings.catalog_path:
        return ModelCatalog.from_yaml(settings.catalog_path)
    return DEFAULT_CATALOG


def get_api_key(
    provider: Provider | str,
    settings: RouterSettings | None = None,
) -> str | None:
    """API key for a provider: environment first, then config file."""
    provider = Provider.parse(provider)
    env_value = os.environ.get(PROVIDERS[provider]["env_var"])
    if env_value:
        return env_value

    settings = settings or get_settings()
    return settings.api_keys.get(provider.value) or None


def configured_providers(settings: RouterSettings | None = None) -> list[Provider]:
    """Providers with an API key available."""
    settings = settings or get_settings()
    return [p for p in Provider if get_api_key(p, settings)]
