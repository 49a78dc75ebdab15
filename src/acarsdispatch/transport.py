"""Summary: HTTP transport for Hoppie requests.

Importance: Maps network failures onto the ACARS error taxonomy in one place.
Alternatives: Let urllib exceptions leak into the sync loop.
"""

from __future__ import annotations

import logging
import socket
import urllib.error
import urllib.request
from abc import ABC, abstractmethod

from acarsdispatch.codec import RequestSpec
from acarsdispatch.errors import ServerRejectedError, TransportTimeoutError, UnreachableError


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class Transport(ABC):
    """Summary: Abstract interface for executing Hoppie requests.

    Importance: Allows swapping the network for fakes in tests and demos.
    Alternatives: Patch urllib globally wherever requests are made.
    """

    @abstractmethod
    def fetch(self, spec: RequestSpec) -> str:
        """Summary: Execute the request and return the response body.

        Importance: Gives the codec a plain text body or a typed failure.
        Alternatives: Return response objects with status codes to inspect.
        """


class HttpTransport(Transport):
    """Summary: Transport that performs real GET requests with urllib.

    Importance: Talks to the Hoppie endpoint without extra dependencies.
    Alternatives: Use httpx or requests with a session object.
    """

    def __init__(self, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._timeout_seconds = timeout_seconds

    def fetch(self, spec: RequestSpec) -> str:
        """Summary: Perform one GET request with a hard timeout.

        Importance: No retries here; resilience is the caller's policy.
        Alternatives: Retry inside the transport on every failure.
        """

        request = urllib.request.Request(
            spec.full_url(),
            headers={"Accept": "text/plain"},
            method="GET",
        )
        try:
            with urllib.request.urlopen(request, timeout=self._timeout_seconds) as response:
                status = response.status
                raw = response.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as exc:
            raise ServerRejectedError(exc.code) from exc
        except urllib.error.URLError as exc:
            if isinstance(exc.reason, (socket.timeout, TimeoutError)):
                raise TransportTimeoutError() from exc
            raise UnreachableError(f"Hoppie endpoint unreachable: {exc.reason}") from exc
        except (socket.timeout, TimeoutError) as exc:
            raise TransportTimeoutError() from exc
        except OSError as exc:
            raise UnreachableError(f"Hoppie connection failed: {exc}") from exc
        if not 200 <= status < 300:
            raise ServerRejectedError(status)
        logger.debug("Hoppie responded with %s bytes.", len(raw))
        return raw
