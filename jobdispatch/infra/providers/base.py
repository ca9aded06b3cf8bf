# jobdispatch/infra/providers/base.py
"""
Enrichment provider abstraction layer.

Each provider client does exactly one thing: call its remote service,
validate the JSON, and return a domain object.  Every failure mode is
raised as ``ProviderError`` so the enricher has one exception type to
trap before falling back to synthesized data.
"""
from __future__ import annotations

from typing import Any

import aiohttp
from pydantic import BaseModel, ValidationError

from jobdispatch.infra.http_client import get_provider_session
from jobdispatch.infra.logging_config import get_logger

logger = get_logger(__name__)


class ProviderError(Exception):
    """
    Provider call failed.

    Attributes:
        provider: ``"weather"``, ``"traffic"`` or ``"route"``.
        reason: ``"timeout"``, ``"http_status"``, ``"network"``,
            ``"parse"`` or ``"not_configured"`` (used as a metric label).
    """

    def __init__(self, provider: str, reason: str, message: str = ""):
        self.provider = provider
        self.reason = reason
        super().__init__(message or f"{provider} provider failed: {reason}")


async def fetch_json(
    provider: str,
    url: str | None,
    params: dict[str, str],
    *,
    timeout_seconds: float,
    api_key: str | None = None,
) -> Any:
    """GET ``url`` and return decoded JSON, or raise ``ProviderError``."""
    if not url:
        raise ProviderError(provider, "not_configured", f"{provider} provider URL is not set")

    headers = {"Accept": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    try:
        session = get_provider_session()
        async with session.get(
            url,
            params=params,
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=timeout_seconds),
        ) as resp:
            if resp.status < 200 or resp.status >= 300:
                raise ProviderError(provider, "http_status", f"{provider} provider returned status {resp.status}")
            return await resp.json(content_type=None)

    except ProviderError:
        raise
    except TimeoutError as exc:
        raise ProviderError(provider, "timeout", f"{provider} provider timed out") from exc
    except aiohttp.ClientError as exc:
        raise ProviderError(provider, "network", f"{provider} provider network error: {exc}") from exc
    except ValueError as exc:
        raise ProviderError(provider, "parse", f"{provider} provider returned invalid JSON") from exc


def parse_model(provider: str, model: type[BaseModel], data: Any) -> BaseModel:
    """Validate provider JSON against its schema, or raise ``ProviderError``."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ProviderError(
            provider, "parse",
            f"{provider} provider payload invalid: {exc.error_count()} error(s)",
        ) from exc
