"""Summary: Credential-gated polling loop and send operation.

Importance: Keeps the message store in step with the Hoppie mailbox in the background.
Alternatives: Poll only when the operator presses refresh.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable

from acarsdispatch.codec import (
    DEFAULT_HOPPIE_URL,
    RequestSpec,
    decode_received,
    decode_send_result,
    encode_receive,
    encode_send,
)
from acarsdispatch.errors import AcarsError, TransportTimeoutError, UnreachableError
from acarsdispatch.models import (
    ACARSMessage,
    MessageStatus,
    MessageType,
    OutboundRequest,
    Priority,
    generate_message_id,
    normalize_station,
    validate_callsign,
)
from acarsdispatch.store import MessageStore
from acarsdispatch.transport import Transport


logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 30.0

Notifier = Callable[[bool, str], None]


class LoopState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass(frozen=True)
class RetryPolicy:
    """Summary: Bounded retry settings for transient send failures.

    Importance: Retries timeouts and connection failures without retrying rejections.
    Alternatives: Retry every failure a fixed number of times.
    """

    max_attempts: int = 3
    delay_seconds: float = 1.0
    backoff: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given failed attempt (1-based)."""

        return self.delay_seconds * (self.backoff ** (attempt - 1))


@dataclass(frozen=True)
class SendResult:
    """Summary: Outcome of a send operation.

    Importance: Lets callers show a success or failure message without catching errors.
    Alternatives: Raise on failure and return the message on success.
    """

    success: bool
    message: ACARSMessage | None = None
    error: AcarsError | None = None

    @property
    def user_message(self) -> str:
        if self.error is not None:
            return self.error.user_message
        return "Message sent successfully"


class SyncLoop:
    """Summary: Drives sends and periodic receives for one dispatch station.

    Importance: Owns the polling lifecycle tied to the presence of a logon code.
    Alternatives: Use a framework scheduler such as APScheduler.
    """

    def __init__(
        self,
        store: MessageStore,
        transport: Transport,
        station: str = "JALV",
        base_url: str = DEFAULT_HOPPIE_URL,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        retry_policy: RetryPolicy | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._store = store
        self._transport = transport
        self._station = normalize_station(station)
        self._base_url = base_url
        self._interval_seconds = interval_seconds
        self._retry_policy = retry_policy or RetryPolicy()
        self._notifier = notifier
        self._logon_code = ""
        self._state = LoopState.IDLE
        self._state_lock = threading.Lock()
        self._activate_lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._closed = threading.Event()
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def station(self) -> str:
        return self._station

    @property
    def store(self) -> MessageStore:
        return self._store

    def activate(self, logon_code: str, station: str | None = None) -> None:
        """Summary: Enter the active state and start polling.

        Importance: Performs one refresh immediately so the mailbox shows up without waiting.
        Alternatives: Wait for the first timer tick before polling.
        """

        if not logon_code:
            raise ValueError("A logon code is required to activate polling")
        with self._activate_lock:
            self.deactivate()
            with self._state_lock:
                self._logon_code = logon_code
                if station:
                    self._station = normalize_station(station)
                self._state = LoopState.ACTIVE
            logger.info("Activated ACARS polling for %s.", self._station)
            self.refresh()
            with self._state_lock:
                if self._state is not LoopState.ACTIVE or self._closed.is_set():
                    return
                stop_event = threading.Event()
                thread = threading.Thread(
                    target=self._run,
                    args=(stop_event,),
                    name=f"acars-sync-{self._station}",
                    daemon=True,
                )
                self._stop_event = stop_event
                self._thread = thread
            thread.start()

    def deactivate(self) -> None:
        """Summary: Return to idle, dropping the credential and cancelling the timer.

        Importance: Logging out must stop all background network traffic.
        Alternatives: Keep polling and discard results while idle.
        """

        with self._state_lock:
            stop_event, thread = self._stop_event, self._thread
            self._stop_event = None
            self._thread = None
            was_active = self._state is LoopState.ACTIVE
            self._state = LoopState.IDLE
            self._logon_code = ""
        if stop_event is not None:
            stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=1.0)
        if was_active:
            logger.info("Deactivated ACARS polling for %s.", self._station)

    def shutdown(self) -> None:
        """Summary: Tear down the loop and dispose of the store.

        Importance: Results of a poll still in flight are never applied afterwards.
        Alternatives: Block shutdown until in-flight requests finish.
        """

        self._closed.set()
        self.deactivate()
        self._store.dispose()

    def refresh(self) -> int | None:
        """Summary: Poll the mailbox once and merge the results.

        Importance: At most one poll is in flight; overlapping calls are skipped, not queued.
        Alternatives: Queue refresh requests and run them sequentially.
        """

        if not self._refresh_lock.acquire(blocking=False):
            logger.info("Skipped refresh; a poll is already in flight.")
            return None
        try:
            spec = encode_receive(self._station, self._logon_code, self._base_url)
            body = self._transport.fetch(spec)
            messages = decode_received(body, now=datetime.now())
            inserted = self._store.merge(messages)
        except AcarsError as exc:
            logger.warning("Receive poll for %s failed (%s): %s", self._station, exc.kind.value, exc)
            return 0
        finally:
            self._refresh_lock.release()
        if inserted:
            logger.info("Merged %s new messages for %s.", inserted, self._station)
        return inserted

    def compose(
        self, to_station: str, packet: str, message_type: MessageType = MessageType.TELEX
    ) -> OutboundRequest:
        """Summary: Build an outbound request from the current session.

        Importance: Callers never handle the logon code directly.
        Alternatives: Require callers to pass credentials with every send.
        """

        destination = normalize_station(to_station)
        if not validate_callsign(destination):
            logger.info("Destination %s is not a flight callsign.", destination)
        return OutboundRequest(
            from_station=self._station,
            to_station=destination,
            type=MessageType(message_type),
            packet=packet,
            logon_code=self._logon_code,
        )

    def send(self, request: OutboundRequest) -> SendResult:
        """Summary: Send one message and record it locally on success.

        Importance: The store learns about its own message without waiting for a poll.
        Alternatives: Refresh after sending and rely on the server echo.

        Raises ValueError for a request with an empty station; network and
        protocol failures come back as an unsuccessful SendResult.
        """

        try:
            spec = encode_send(request, self._base_url)
            body = self._fetch_with_retry(spec)
            decode_send_result(body)
        except AcarsError as exc:
            logger.warning("Send to %s failed (%s): %s", request.to_station, exc.kind.value, exc)
            self._notify(False, exc.user_message)
            return SendResult(success=False, error=exc)
        message_type = MessageType(request.type)
        is_pdc = message_type is MessageType.PDC
        message = ACARSMessage(
            id=generate_message_id(),
            timestamp=datetime.now(),
            from_station=request.from_station,
            to_station=request.to_station,
            type=message_type,
            content=request.packet,
            status=MessageStatus.PENDING if is_pdc else MessageStatus.SENT,
            priority=Priority.NORMAL,
        )
        self._store.append(message)
        logger.info("Sent %s message %s to %s.", message.type.value, message.id, message.to_station)
        result = SendResult(success=True, message=message)
        self._notify(True, result.user_message)
        return result

    def _fetch_with_retry(self, spec: RequestSpec) -> str:
        attempt = 1
        while True:
            try:
                return self._transport.fetch(spec)
            except (TransportTimeoutError, UnreachableError) as exc:
                if attempt >= self._retry_policy.max_attempts:
                    raise
                delay = self._retry_policy.delay_for(attempt)
                logger.info(
                    "Retrying Hoppie request in %.1fs after %s (attempt %s of %s).",
                    delay,
                    exc.kind.value,
                    attempt,
                    self._retry_policy.max_attempts,
                )
                if self._closed.wait(delay):
                    raise
                attempt += 1

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self._interval_seconds):
            try:
                self.refresh()
            except Exception:
                logger.exception("Unexpected error during scheduled refresh.")

    def _notify(self, success: bool, text: str) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier(success, text)
        except Exception:
            logger.exception("Notifier failed.")
