"""
Proxy Request Processor - Service Layer

Standardizes the flow: RequestContext -> origin fetch -> decode -> delivery,
degrading to a redirect to the origin whenever any step fails.
"""

import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from starlette.datastructures import MutableHeaders
from starlette.responses import Response

from ..config import ProxyConfig
from ..core.antibot import is_challenge_status
from ..core.decompression import Decompressor
from ..core.exceptions import OriginStatusError
from ..core.transport import PRIMARY_SCHEMES, OriginTransport
from ..models.context import RequestContext
from ..models.origin import OriginResponse
from ..models.outbound import build_outbound_request
from .collaborators import copy_headers, redirect_to_origin
from .delivery import DeliveryPolicy

logger = logging.getLogger("gateway.processor")

RedirectWriter = Callable[[RequestContext, MutableHeaders], Awaitable[Response]]
HeaderCopier = Callable[[OriginResponse, MutableHeaders], None]


class ProxyState(Enum):
    DISPATCHING = "dispatching"
    FETCHED = "fetched"
    DECODING = "decoding"
    ROUTING = "routing"
    DONE = "done"
    REDIRECTING = "redirecting"


class ProxyRequestProcessor:
    """
    Orchestrates the request processing lifecycle.

    The client always receives transformed content, the original content or a
    redirect to the origin; never a bare error.
    """

    def __init__(
        self,
        transport: OriginTransport,
        decompressor: Decompressor,
        delivery: DeliveryPolicy,
        config: ProxyConfig,
        redirect: RedirectWriter = redirect_to_origin,
        header_copier: HeaderCopier = copy_headers,
        log: Optional[logging.Logger] = None,
    ):
        self.transport = transport
        self.decompressor = decompressor
        self.delivery = delivery
        self.config = config
        self.redirect = redirect
        self.header_copier = header_copier
        self.logger = log or logger

    def _enter(self, state: ProxyState, context: RequestContext) -> ProxyState:
        self.logger.debug(f"-> {state.value}", extra={"url": context.url, "state": state.value})
        return state

    async def process_request(self, context: RequestContext) -> Response:
        sink = MutableHeaders()
        state = self._enter(ProxyState.DISPATCHING, context)

        try:
            spec = build_outbound_request(
                context,
                user_agent=self.config.ORIGIN_USER_AGENT,
                via=self.config.PROXY_VIA,
                timeout=self.config.ORIGIN_TIMEOUT_SECONDS,
                max_redirects=self.config.ORIGIN_MAX_REDIRECTS,
            )
            origin = await self.transport.fetch(spec)

            state = self._enter(ProxyState.FETCHED, context)
            if origin is None:
                self.logger.error("Origin response is empty", extra={"url": context.url})
                return await self._redirect(context, sink)

            if is_challenge_status(origin.status_code, self.config.ANTIBOT_STATUS_CODES):
                self.logger.info(
                    f"Bypassing due to anti-bot status: {origin.status_code}",
                    extra={"url": context.url, "status": origin.status_code},
                )
                response = await self.delivery.pass_through(context, sink, origin.body)
                self._enter(ProxyState.DONE, context)
                return response

            # Non-2xx primary responses send the client to the origin.
            if not origin.is_success and context.target.scheme in PRIMARY_SCHEMES:
                raise OriginStatusError(context.url, origin.status_code)

            state = self._enter(ProxyState.DECODING, context)
            content_encoding = origin.content_encoding
            if content_encoding:
                data = await self.decompressor.decompress(origin.body, content_encoding)
            else:
                data = origin.body

            state = self._enter(ProxyState.ROUTING, context)
            self.header_copier(origin, sink)
            sink["content-encoding"] = "identity"
            context.origin_type = origin.content_type
            context.origin_size = len(data)

            response = await self.delivery.deliver(context, sink, data)
            self._enter(ProxyState.DONE, context)
            return response

        except Exception as e:
            self.logger.error(
                f"Request handling failed: {e}",
                extra={
                    "url": context.url,
                    "state": state.value,
                    "error_type": type(e).__name__,
                    "error_detail": str(e),
                },
            )
            return await self._redirect(context, sink)

    async def _redirect(self, context: RequestContext, sink: MutableHeaders) -> Response:
        self._enter(ProxyState.REDIRECTING, context)
        return await self.redirect(context, sink)
