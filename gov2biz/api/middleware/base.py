"""Common interface of the request pipeline stages."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TypeAlias

from starlette.requests import Request
from starlette.responses import Response

from gov2biz.core.context import RequestContext

# Downstream of a stage: the next stage or, at the end, the route handler
Handler: TypeAlias = Callable[[Request, RequestContext], Awaitable[Response]]


class PipelineStage(ABC):
    """A unit of the request pipeline.

    Each stage observes or transforms a request and decides whether and how
    to delegate to ``call_next``.
    """

    @abstractmethod
    async def handle(
        self,
        request: Request,
        context: RequestContext,
        call_next: Handler,
    ) -> Response:
        """Process the request.

        Args:
            request: The incoming request.
            context: Context of the request being processed.
            call_next: The rest of the pipeline.

        Returns:
            Response: The response to send.
        """
