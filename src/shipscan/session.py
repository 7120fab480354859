from __future__ import annotations

import asyncio
import logging
import threading
import time
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from .codes import CodeCollection
from .config import ScannerConfig
from .errors import (
    AcquisitionError,
    AcquisitionFailure,
    PreconditionError,
    SessionClosedError,
    SessionIndexError,
    ValidationError,
    ValidationReason,
)
from .events import (
    CodeAcceptedEvent,
    CodeRemovedEvent,
    CodeSource,
    ErrorEvent,
    Event,
    StateChangeEvent,
    WarningEvent,
)
from .interfaces import Clock, DetectionCapability, DetectionRequest

logger = logging.getLogger(__name__)

EventCallback = Callable[[Event], None]
ScannedCallback = Callable[[List[str]], None]
CloseCallback = Callable[[], None]


class SessionState(str, Enum):
    IDLE = "idle"
    ACQUIRING = "acquiring"
    ACTIVE = "active"
    PAUSED = "paused"
    CLOSED = "closed"


class ScanSessionManager:
    """Opens scan sessions and arbitrates ownership of the detection capability.

    Only one session may hold the capability at a time. A session claims it in
    :meth:`ScanSession.begin_acquisition` and gives it back when it closes or
    when acquisition fails.
    """

    def __init__(
        self,
        capability: DetectionCapability,
        config: Optional[ScannerConfig] = None,
        event_callback: Optional[EventCallback] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.capability = capability
        self.config = config or ScannerConfig()
        self.event_callback = event_callback
        self.clock = clock or time.monotonic
        self._owner: Optional[ScanSession] = None
        self._lock = threading.Lock()

    @property
    def owner(self) -> Optional["ScanSession"]:
        return self._owner

    def open(
        self,
        existing: Iterable[str] = (),
        on_scanned: Optional[ScannedCallback] = None,
        on_close: Optional[CloseCallback] = None,
    ) -> "ScanSession":
        session = ScanSession(self, existing, on_scanned=on_scanned, on_close=on_close)
        logger.info("Opened scan session with %d existing barcode(s)", len(session.collected))
        return session

    def _claim(self, session: "ScanSession") -> None:
        with self._lock:
            if self._owner is not None and self._owner is not session:
                raise AcquisitionError(AcquisitionFailure.DEVICE_BUSY)
            self._owner = session

    def _release(self, session: "ScanSession") -> None:
        with self._lock:
            if self._owner is session:
                self._owner = None


class ScanSession:
    """One barcode-collection activity.

    Codes arrive from the detection capability (:meth:`on_candidates_detected`)
    and from the keyboard (:meth:`submit_manual`). Both paths go through the
    same lock and append to one insertion-ordered, duplicate-free list.
    Observer events and caller callbacks run after the lock is released.
    """

    def __init__(
        self,
        manager: ScanSessionManager,
        existing: Iterable[str] = (),
        on_scanned: Optional[ScannedCallback] = None,
        on_close: Optional[CloseCallback] = None,
    ) -> None:
        self._manager = manager
        self._capability = manager.capability
        self._config = manager.config
        self._clock = manager.clock
        self._event_callback = manager.event_callback
        self._on_scanned = on_scanned
        self._on_close = on_close
        self._codes = CodeCollection(existing)
        self._state = SessionState.IDLE
        self._pending_manual_input = ""
        self._cooldown_until: Optional[float] = None
        self._holds_capability = False
        self._lock = threading.Lock()

    def __enter__(self) -> "ScanSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self.closed:
            self.cancel()

    @property
    def state(self) -> SessionState:
        with self._critical() as pending:
            self._refresh_cooldown(pending)
            return self._state

    @property
    def closed(self) -> bool:
        return self._state is SessionState.CLOSED

    @property
    def collected(self) -> List[str]:
        with self._critical():
            return self._codes.snapshot()

    @property
    def pending_manual_input(self) -> str:
        return self._pending_manual_input

    @pending_manual_input.setter
    def pending_manual_input(self, text: str) -> None:
        with self._critical("edit manual input"):
            self._pending_manual_input = text

    def can_submit_manual(self, text: Optional[str] = None) -> bool:
        with self._critical():
            value = (self._pending_manual_input if text is None else text).strip()
            return not self.closed and bool(value) and value not in self._codes

    def can_commit(self) -> bool:
        with self._critical():
            return not self.closed and len(self._codes) > 0

    async def begin_acquisition(self) -> None:
        """Start the detection capability and switch to :attr:`SessionState.ACTIVE`.

        On failure the session moves to :attr:`SessionState.PAUSED`, an
        :class:`ErrorEvent` is emitted and :class:`AcquisitionError` is raised.
        Manual entry keeps working either way.
        """
        with self._critical("begin acquisition") as pending:
            self._refresh_cooldown(pending)
            if self._state in (SessionState.ACTIVE, SessionState.ACQUIRING):
                return
            if self._holds_capability:
                self._cooldown_until = None
                self._set_state(SessionState.ACTIVE, pending)
                return
            try:
                self._manager._claim(self)
            except AcquisitionError as exc:
                self._record_failure(exc, pending)
                raise
            self._holds_capability = True
            self._set_state(SessionState.ACQUIRING, pending)

        request = DetectionRequest(facing=self._config.facing, symbologies=self._config.symbologies)
        timeout = self._config.acquisition_timeout
        try:
            await asyncio.wait_for(self._capability.start(request, self.on_candidates_detected), timeout)
        except AcquisitionError as exc:
            self._acquisition_failed(exc)
            raise
        except asyncio.TimeoutError as exc:
            error = AcquisitionError(
                AcquisitionFailure.UNKNOWN,
                f"Camera did not become ready within {timeout:g} seconds",
            )
            self._acquisition_failed(error)
            raise error from exc
        except asyncio.CancelledError:
            self._acquisition_failed(None)
            raise
        except Exception as exc:
            logger.exception("Detection capability raised while starting")
            error = AcquisitionError(AcquisitionFailure.UNKNOWN)
            self._acquisition_failed(error)
            raise error from exc

        with self._critical() as pending:
            closed_meanwhile = self._state is SessionState.CLOSED
            if not closed_meanwhile:
                self._set_state(SessionState.ACTIVE, pending)
        if closed_meanwhile:
            self._stop_and_release()
            raise SessionClosedError("begin acquisition")

    def on_candidate_detected(self, code: str) -> bool:
        """Accept a value reported by the detector. Returns True when it was appended."""
        return bool(self.on_candidates_detected([code]))

    def on_candidates_detected(self, codes: Sequence[str]) -> List[str]:
        """Accept every value recognized in one frame.

        New values are appended in the order given and the cooldown starts once
        the whole frame has been taken in. Returns the values that were appended.
        """
        with self._critical("accept detected barcode") as pending:
            self._refresh_cooldown(pending)
            if self._state is not SessionState.ACTIVE:
                logger.debug("Ignoring %d candidate(s) while %s", len(codes), self._state.value)
                return []
            accepted: List[str] = []
            for code in codes:
                if not code or not self._codes.add(code):
                    continue
                accepted.append(code)
                pending.append(
                    CodeAcceptedEvent(
                        timestamp=datetime.now(),
                        code=code,
                        source=CodeSource.DETECTED,
                        index=len(self._codes) - 1,
                    )
                )
            if accepted and self._config.cooldown_seconds > 0:
                self._cooldown_until = self._clock() + self._config.cooldown_seconds
                self._set_state(SessionState.PAUSED, pending)
            return accepted

    def submit_manual(self, text: Optional[str] = None) -> str:
        """Append a typed barcode, defaulting to :attr:`pending_manual_input`.

        Returns the trimmed value that was stored.
        """
        with self._critical("submit barcode") as pending:
            self._refresh_cooldown(pending)
            value = (self._pending_manual_input if text is None else text).strip()
            if not value:
                error = ValidationError(ValidationReason.EMPTY)
            elif value in self._codes:
                error = ValidationError(ValidationReason.DUPLICATE, value)
            else:
                self._codes.add(value)
                self._pending_manual_input = ""
                pending.append(
                    CodeAcceptedEvent(
                        timestamp=datetime.now(),
                        code=value,
                        source=CodeSource.MANUAL,
                        index=len(self._codes) - 1,
                    )
                )
                return value
            pending.append(WarningEvent(timestamp=datetime.now(), message=str(error)))
            raise error

    def remove(self, index: int) -> str:
        with self._critical("remove barcode") as pending:
            if not 0 <= index < len(self._codes):
                raise SessionIndexError(index, len(self._codes))
            code = self._codes.pop(index)
            pending.append(CodeRemovedEvent(timestamp=datetime.now(), code=code, index=index))
            return code

    def pause(self) -> bool:
        with self._critical("pause") as pending:
            self._refresh_cooldown(pending)
            if self._state is SessionState.PAUSED and self._cooldown_until is not None:
                # stay paused once the cooldown runs out
                self._cooldown_until = None
                return True
            if self._state is not SessionState.ACTIVE:
                return False
            self._set_state(SessionState.PAUSED, pending)
            return True

    def resume(self) -> bool:
        """Resume detection after :meth:`pause` or a cooldown.

        Returns False when the capability is not held; call
        :meth:`begin_acquisition` in that case.
        """
        with self._critical("resume") as pending:
            if self._state is not SessionState.PAUSED or not self._holds_capability:
                return False
            self._cooldown_until = None
            self._set_state(SessionState.ACTIVE, pending)
            return True

    def commit(self) -> List[str]:
        with self._critical("commit") as pending:
            if not self._codes:
                raise PreconditionError()
            codes = self._codes.snapshot()
            held, acquiring = self._close(pending)
        self._teardown(held, acquiring)
        logger.info("Committed %d barcode(s)", len(codes))
        if self._on_scanned is not None:
            self._on_scanned(list(codes))
        return codes

    def cancel(self) -> None:
        with self._critical("cancel") as pending:
            held, acquiring = self._close(pending)
        self._teardown(held, acquiring)
        logger.info("Scan session cancelled")
        if self._on_close is not None:
            self._on_close()

    @contextmanager
    def _critical(self, operation: Optional[str] = None) -> Iterator[List[Event]]:
        pending: List[Event] = []
        try:
            with self._lock:
                if operation is not None and self._state is SessionState.CLOSED:
                    raise SessionClosedError(operation)
                yield pending
        finally:
            for event in pending:
                self._emit(event)

    def _set_state(self, state: SessionState, pending: List[Event]) -> None:
        if state is self._state:
            return
        logger.debug("Scan session %s -> %s", self._state.value, state.value)
        self._state = state
        pending.append(StateChangeEvent(timestamp=datetime.now(), state=state.value))

    def _refresh_cooldown(self, pending: List[Event]) -> None:
        if self._cooldown_until is None or self._state is not SessionState.PAUSED:
            return
        if self._clock() >= self._cooldown_until:
            self._cooldown_until = None
            self._set_state(SessionState.ACTIVE, pending)

    def _record_failure(self, error: AcquisitionError, pending: List[Event]) -> None:
        logger.warning("Barcode detection unavailable (%s): %s", error.reason.value, error.message)
        self._set_state(SessionState.PAUSED, pending)
        pending.append(
            ErrorEvent(
                timestamp=datetime.now(),
                message=error.message,
                recoverable=True,
                reason=error.reason.value,
            )
        )

    def _acquisition_failed(self, error: Optional[AcquisitionError]) -> None:
        self._stop_and_release()
        with self._critical() as pending:
            self._holds_capability = False
            if self._state is SessionState.CLOSED:
                return
            if error is None:
                self._set_state(SessionState.PAUSED, pending)
            else:
                self._record_failure(error, pending)

    def _close(self, pending: List[Event]) -> Tuple[bool, bool]:
        held = self._holds_capability
        acquiring = self._state is SessionState.ACQUIRING
        self._holds_capability = False
        self._cooldown_until = None
        self._set_state(SessionState.CLOSED, pending)
        return held, acquiring

    def _teardown(self, held: bool, acquiring: bool) -> None:
        # while start() is still pending, begin_acquisition releases the claim
        try:
            if held:
                self._capability.stop()
        finally:
            if not acquiring:
                self._manager._release(self)

    def _stop_and_release(self) -> None:
        try:
            self._capability.stop()
        finally:
            self._manager._release(self)

    def _emit(self, event: Event) -> None:
        if self._event_callback is not None:
            self._event_callback(event)
