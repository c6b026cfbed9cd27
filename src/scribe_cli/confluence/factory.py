"""Construction of the REST client matching the configured provider."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..config import ProviderType, ScribeConfig
from ..errors import ConfigurationError
from .client import ChalkClient, ConfluenceClient, ScribeClient

logger = logging.getLogger(__name__)


def create_client(
    config: ScribeConfig,
    *,
    transport: Optional[httpx.BaseTransport] = None,
) -> ScribeClient:
    """Return a client for ``config``'s provider."""

    provider = config.resolved_provider
    credentials = config.credentials
    base_url = str(credentials.url)
    logger.debug("Using %s provider at %s", provider.value, base_url)

    if provider is ProviderType.CHALK:
        return ChalkClient(
            base_url=base_url,
            api_token=credentials.api_token,
            timeout=config.timeout,
            transport=transport,
        )
    if not credentials.username:
        raise ConfigurationError("The cloud provider requires a username (SCRIBE_USERNAME)")
    return ConfluenceClient(
        base_url=base_url,
        username=credentials.username,
        api_token=credentials.api_token,
        timeout=config.timeout,
        transport=transport,
    )
