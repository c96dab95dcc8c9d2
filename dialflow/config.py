"""dialflow editor configuration."""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class EditorSettings(BaseSettings):
    """Environment-driven settings for the graph editor."""

    api_url: str = "http://localhost:3001/api"
    api_token: str = ""
    request_timeout: float = 15.0

    # Commit fan-out
    max_concurrent_requests: int = 10

    # Retry DELETE via the legacy POST .../delete route when DELETE 404s
    delete_fallback: bool = True

    # Keep failed items pending for the next commit instead of dropping them
    retain_failed: bool = True

    model_config = {"env_prefix": "DIALFLOW_", "env_file": ".env", "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> EditorSettings:
    settings = EditorSettings()
    logger.info(
        "Editor config: api_url=%s, has_token=%s, retain_failed=%s",
        settings.api_url,
        bool(settings.api_token),
        settings.retain_failed,
    )
    return settings
