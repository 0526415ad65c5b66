"""
Where: hero_proxy/gateway/lifecycle.py
What: Proxy startup/shutdown orchestration for shared resources.
Why: Keep main.py focused on app assembly while preserving lifecycle behavior.
"""

import logging
from contextlib import asynccontextmanager
from functools import partial
from typing import AsyncIterator

from fastapi import FastAPI

from hero_proxy.common.core.http_client import HttpClientFactory

from .config import ProxyConfig
from .core.decompression import Decompressor
from .core.transport import OriginTransport
from .services import collaborators
from .services.delivery import DeliveryPolicy
from .services.processor import ProxyRequestProcessor

logger = logging.getLogger("gateway.main")


@asynccontextmanager
async def manage_lifespan(app: FastAPI, proxy_config: ProxyConfig) -> AsyncIterator[None]:
    """Manage application lifecycle."""
    factory = HttpClientFactory(proxy_config)
    client = factory.create_async_client(
        timeout=proxy_config.ORIGIN_TIMEOUT_SECONDS,
        max_redirects=proxy_config.ORIGIN_MAX_REDIRECTS,
    )

    try:
        delivery = DeliveryPolicy(
            should_transform=partial(
                collaborators.should_transform,
                min_length=proxy_config.MIN_COMPRESS_LENGTH,
                min_transparent_length=proxy_config.MIN_TRANSPARENT_COMPRESS_LENGTH,
            ),
            transform=collaborators.transform,
            pass_through=collaborators.pass_through,
        )

        app.state.processor = ProxyRequestProcessor(
            transport=OriginTransport(client, factory),
            decompressor=Decompressor(),
            delivery=delivery,
            config=proxy_config,
        )

        logger.info(
            "Proxy initialized with shared resources.",
            extra={
                "timeout": proxy_config.ORIGIN_TIMEOUT_SECONDS,
                "max_redirects": proxy_config.ORIGIN_MAX_REDIRECTS,
                "antibot_status_codes": proxy_config.ANTIBOT_STATUS_CODES,
            },
        )
        yield
    finally:
        logger.info("Proxy shutting down, closing http client.")
        await client.aclose()
