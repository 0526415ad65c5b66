import logging

import httpx

from .config import BaseAppConfig

logger = logging.getLogger(__name__)


class HttpClientFactory:
    """
    HTTP Client Factory for centralized SSL verification handling.
    """

    def __init__(self, config: BaseAppConfig):
        self.config = config

    def create_async_client(self, **kwargs) -> httpx.AsyncClient:
        """
        Create an httpx.AsyncClient with configured SSL verification.

        Args:
            **kwargs: Additional arguments for httpx.AsyncClient
        """
        verify = kwargs.pop("verify", None)

        # If verify is not explicitly provided, use config default
        if verify is None:
            verify = self.config.VERIFY_SSL
        if not verify:
            logger.debug("Creating origin client without SSL verification (VERIFY_SSL=False)")

        # Avoid leaking host HTTP(S)_PROXY/NO_PROXY into origin fetches unless explicitly requested.
        kwargs.setdefault("trust_env", False)

        return httpx.AsyncClient(verify=verify, **kwargs)

    def create_http2_client(self, **kwargs) -> httpx.AsyncClient:
        """
        Create a single-use HTTP/2 client.

        Requires the ``h2`` package (``httpx[http2]``). The caller owns the
        client and must close it, preferably with ``async with``.
        """
        kwargs.setdefault("follow_redirects", False)
        return self.create_async_client(http2=True, **kwargs)
