"""HRIS connection configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_flag, env_number, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

HRIS_API_CLIENT_NAME = "hrisync"
DEFAULT_HRIS_TIMEOUT_SECONDS = 30.0
DEFAULT_HRIS_PAGE_SIZE = 100
DEFAULT_HRIS_MAX_CONCURRENT_PAGES = 4


@dataclass(frozen=True, slots=True)
class HrisConfig:
    """Holds HRIS API configuration values."""

    api_url: str
    api_key: str
    resilience: ResilienceConfig
    page_size: int = DEFAULT_HRIS_PAGE_SIZE
    max_concurrent_pages: int = DEFAULT_HRIS_MAX_CONCURRENT_PAGES


def build_hris_resilience(
    api_url: str,
    api_key: str,
    *,
    timeout_seconds: float = DEFAULT_HRIS_TIMEOUT_SECONDS,
    retry: RetryPolicy | None = None,
    ratelimit: RateLimit | None = None,
) -> ResilienceConfig:
    """Bearer-authenticated transport settings; retries stay off unless asked for."""

    return ResilienceConfig(
        base_url=api_url,
        timeout_seconds=timeout_seconds,
        retry=retry or RetryPolicy(),
        ratelimit=ratelimit,
        default_headers={
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
            "X-API-Client": HRIS_API_CLIENT_NAME,
        },
    )


def get_hris_config(*, resilience: ResilienceConfig | None = None) -> HrisConfig:
    values = require_env_vars(("HRIS_API_URL", "HRIS_API_KEY"))
    api_url = values["HRIS_API_URL"].strip()
    api_key = values["HRIS_API_KEY"].strip()
    if resilience is None:
        max_per_second = env_number("HRIS_MAX_REQUESTS_PER_SECOND", 0, cast=int)
        resilience = build_hris_resilience(
            api_url,
            api_key,
            timeout_seconds=env_number(
                "HRIS_TIMEOUT_SECONDS", DEFAULT_HRIS_TIMEOUT_SECONDS, cast=float
            ),
            retry=RetryPolicy(total=env_number("HRIS_RETRY_TOTAL", 0, cast=int)),
            ratelimit=RateLimit(max_calls=max_per_second) if max_per_second else None,
        )
    return HrisConfig(
        api_url=api_url,
        api_key=api_key,
        resilience=resilience,
        # zero would stall pagination, so it falls back to one
        page_size=env_number("HRIS_PAGE_SIZE", DEFAULT_HRIS_PAGE_SIZE, cast=int) or 1,
        max_concurrent_pages=env_number(
            "HRIS_MAX_CONCURRENT_PAGES", DEFAULT_HRIS_MAX_CONCURRENT_PAGES, cast=int
        )
        or 1,
    )


def is_sync_enabled() -> bool:
    return env_flag("HRIS_SYNC_ENABLED")


def use_fixture_client() -> bool:
    return env_flag("HRIS_USE_FIXTURES")
