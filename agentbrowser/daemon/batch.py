"""Sequential batch execution with stop-on-first-failure.

Requests go out strictly one after another over the transport. The batch
stops at the first response with success=false or the first failed
exchange; nothing is retried and nothing is rolled back.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from agentbrowser.daemon.client import DaemonClient
from agentbrowser.daemon.protocol import Request, Response
from agentbrowser.errors import TransportError

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Aggregate outcome of a batch run."""

    success: bool
    results: List[Response] = field(default_factory=list)
    completed: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "results": [r.to_dict() for r in self.results],
            "completed": self.completed,
            "total": self.total,
        }


class BatchExecutor:
    """Run requests in order through a single transport."""

    def __init__(self, client: DaemonClient):
        self.client = client

    def run(
        self,
        requests: Sequence[Request],
        on_result: Optional[Callable[[Request, Response], None]] = None,
    ) -> BatchResult:
        """
        Execute `requests` in order.

        Args:
            requests: Encoded commands
            on_result: Called with each request and its (possibly
                synthetic) response as soon as it is recorded

        Returns:
            BatchResult; `completed` counts attempted requests
        """
        results: List[Response] = []
        success = True

        for index, request in enumerate(requests, start=1):
            try:
                response = self.client.exchange(request)
            except TransportError as e:
                response = Response.failure(request.id, str(e))

            results.append(response)
            if on_result is not None:
                on_result(request, response)

            if not response.success:
                logger.debug(
                    "Batch stopped at %d/%d (%s): %s",
                    index,
                    len(requests),
                    request.action,
                    response.error,
                )
                success = False
                break

        return BatchResult(
            success=success,
            results=results,
            completed=len(results),
            total=len(requests),
        )
