"""Delegated invocation of submodel operations.

Store-backed submodels cannot run operations themselves. An Operation that
names a ``delegatedInvocationUrl`` is invoked by POSTing its parameters as a
JSON array to that URL; the JSON response body is the result. Operations
without a delegation target raise UnsupportedOperationError.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from shellstore.models import Operation
from shellstore.storage.errors import UnsupportedOperationError

logger = logging.getLogger(__name__)

DEFAULT_INVOCATION_TIMEOUT_SECONDS = 30.0


class DelegatedInvocationError(Exception):
    """Raised when the delegation target fails or cannot be reached."""

    def __init__(self, message: str, *, url: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class DelegatedInvoker:
    """Invokes delegating operations over HTTP.

    Args:
        http_client: Optional httpx.Client for dependency injection (testing).
        timeout_seconds: Timeout for clients created per call.
    """

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        timeout_seconds: float = DEFAULT_INVOCATION_TIMEOUT_SECONDS,
    ) -> None:
        self._http_client = http_client
        self._timeout_seconds = timeout_seconds

    def invoke(self, operation: Operation, *params: Any) -> Any:
        """Invoke ``operation`` at its delegation target.

        Returns:
            The decoded JSON response, or None for an empty body.

        Raises:
            UnsupportedOperationError: If the operation is not delegating.
            DelegatedInvocationError: On network or HTTP errors.
        """
        if not operation.is_delegating or operation.delegated_invocation_url is None:
            raise UnsupportedOperationError("This backend supports only delegating operations")

        url = operation.delegated_invocation_url
        client = self._http_client
        should_close = False
        if client is None:
            client = httpx.Client(timeout=self._timeout_seconds)
            should_close = True
        try:
            response = client.post(url, json=list(params))
        except httpx.HTTPError as e:
            raise DelegatedInvocationError(f"Delegated invocation failed: {e}", url=url) from e
        finally:
            if should_close:
                client.close()

        if response.status_code >= 400:
            raise DelegatedInvocationError(
                f"Delegated invocation returned HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        logger.debug("Invoked operation '%s' at %s", operation.id_short, url)
        if not response.content:
            return None
        return response.json()
