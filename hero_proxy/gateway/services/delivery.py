"""
Delivery policy.

Routes decoded bytes to exactly one of the transform or pass-through writers.
"""

import logging
from typing import Awaitable, Callable

from starlette.datastructures import MutableHeaders
from starlette.responses import Response

from ..models.context import RequestContext

logger = logging.getLogger("gateway.delivery")

ShouldTransform = Callable[[RequestContext, bytes], bool]
ResponseWriter = Callable[[RequestContext, MutableHeaders, bytes], Awaitable[Response]]


class DeliveryPolicy:
    def __init__(
        self,
        should_transform: ShouldTransform,
        transform: ResponseWriter,
        pass_through: ResponseWriter,
    ):
        self.should_transform = should_transform
        self.transform = transform
        self.pass_through = pass_through

    async def deliver(self, context: RequestContext, sink: MutableHeaders, data: bytes) -> Response:
        if self.should_transform(context, data):
            logger.debug(
                "Routing to transform",
                extra={"url": context.url, "origin_type": context.origin_type, "size": len(data)},
            )
            return await self.transform(context, sink, data)

        logger.debug(
            "Routing to pass-through",
            extra={"url": context.url, "origin_type": context.origin_type, "size": len(data)},
        )
        return await self.pass_through(context, sink, data)
