import logging
from typing import Optional

import httpx

from ..core.cancellation import CancellationToken, ensure_token
from ..core.models import InvocationPayload

logger = logging.getLogger(__name__)

ACCEPTED_STATUS = 202


class HttpStageSubmitter:
    """Posts hand-off payloads to the analyzer service"""

    def __init__(self, base_url: str, timeout: float = 10.0,
                 path: str = "/stages/analyzer",
                 client: Optional[httpx.Client] = None):
        self.url = f"{base_url.rstrip('/')}{path}"
        self.timeout = timeout
        self.client = client or httpx.Client(timeout=timeout)

    def submit(self, payload: InvocationPayload, cancel_token: Optional[CancellationToken] = None) -> bool:
        ensure_token(cancel_token).raise_if_cancelled()
        response = self.client.post(self.url, json=payload.to_dict())
        logger.info(
            f"Submitted payload to {self.url}. CorrelationId: {payload.correlation_id}, "
            f"StatusCode: {response.status_code}"
        )
        return response.status_code == ACCEPTED_STATUS

    def close(self):
        self.client.close()
