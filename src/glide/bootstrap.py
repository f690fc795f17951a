from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, Optional
import logging

from dotenv import load_dotenv

from .config_loader import load_config
from .core.types import GenerationDefaults
from .logging_setup import configure_logging
from .providers.registry import ProviderRegistry
from .resilience.retry import RetryPolicy
from .resilience.timeout_policy import TimeoutPolicy
from .secrets.sources import SecretsResolver
from .services.dispatcher import RequestDispatcher

logger = logging.getLogger(__name__)

_DEFAULT_MAPPING = {
    "gemini": {"api_key": "GEMINI_API_KEY"},
    "openai": {"api_key": "OPENAI_API_KEY"},
}


def build_client(cfg: Dict[str, Any], resolver: SecretsResolver):
    """Create the one client handle for this process. Raises ClassifiedError on a bad key."""
    ProviderRegistry.ensure_imports()  # make sure built-ins register

    provider_name = cfg["model"]["provider"]
    model_name = cfg["model"]["name"]
    provider_cfg = (cfg.get("providers") or {}).get(provider_name) or {}

    Adapter = ProviderRegistry.get(provider_name)
    return Adapter.create(model_name=model_name, provider_cfg=provider_cfg, secrets=resolver)


def build_dispatcher(cfg: Dict[str, Any], client) -> RequestDispatcher:
    return RequestDispatcher(
        client,
        timeout_policy=TimeoutPolicy(**(cfg.get("timeouts") or {})),
        retry_policy=RetryPolicy(**(cfg.get("retry") or {})),
        defaults=GenerationDefaults.from_config(cfg.get("generation")),
        default_model=cfg["model"]["name"],
        provider_name=cfg["model"]["provider"],
    )


def build_app(config_path: Path, *, env_file: Optional[Path] = None) -> Dict[str, Any]:
    """
    Composition root: load .env and YAML, configure logging, create the
    client handle once and hand it to the dispatcher.
    Returns: dict with cfg, client, dispatcher.
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()
    cfg = load_config(config_path)

    log_cfg = cfg.get("logging") or {}
    configure_logging(log_cfg.get("level", "WARNING"), json_logs=bool(log_cfg.get("json", False)))

    secrets_cfg = cfg.get("secrets") or {}
    mapping = {**_DEFAULT_MAPPING, **(secrets_cfg.get("mapping") or {})}
    resolver = SecretsResolver(method=secrets_cfg.get("method", "env"), mapping=mapping)

    client = build_client(cfg, resolver)
    dispatcher = build_dispatcher(cfg, client)
    logger.debug("built %s client for model %s", cfg["model"]["provider"], cfg["model"]["name"])

    return {
        "cfg": cfg,
        "client": client,
        "dispatcher": dispatcher,
    }
