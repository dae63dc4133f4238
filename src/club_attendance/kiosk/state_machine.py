from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..core.constants import BACKSPACE_KEY, ENTER_KEY, ESCAPE_KEY, KIOSK_RESET_SECONDS, REGISTER_KEY
from ..core.enums import KioskState
from ..core.exceptions import DomainError, StoreUnavailable
from .backend import KioskBackend, RegistrationTicket, TapOutcome

logger = logging.getLogger(__name__)

REGISTER_TITLE = "新規カード登録"
REGISTER_PROMPT = "登録したいカードをタッチしてください"
REGISTER_HINT = "登録するには「/」キーを押してください"
QR_PROMPT = "スマートフォンでQRコードを読み取ってください"


@dataclass(frozen=True)
class Submission:
    """A card number handed to the backend, tagged with the session generation."""

    generation: int
    card_id: str
    registering: bool


@dataclass(frozen=True)
class KioskView:
    state: KioskState
    message: str
    sub_message: str
    buffer: str
    qr_token: Optional[str] = None
    qr_url: Optional[str] = None
    qr_seconds_remaining: Optional[int] = None
    announcement: Optional[dict] = None

    @property
    def countdown_label(self) -> Optional[str]:
        if self.qr_seconds_remaining is None:
            return None
        minutes, seconds = divmod(self.qr_seconds_remaining, 60)
        return f"有効期限: あと{minutes}分{seconds:02d}秒"


class KioskSession:
    """Keyboard-driven kiosk controller.

    The card reader behaves like a keyboard: it types the card number and
    presses Enter. ``/`` switches to registration mode and Escape cancels.
    Every reset bumps ``generation``; backend results tagged with an older
    generation are discarded.

    By default Enter runs the backend call immediately. With
    ``auto_run=False`` the caller gets the ``Submission`` back from
    ``handle_key`` and finishes it later with ``run``.
    """

    def __init__(
        self,
        backend: KioskBackend,
        *,
        clock: Callable[[], datetime] = now_local,
        reset_seconds: int = KIOSK_RESET_SECONDS,
        auto_run: bool = True,
    ):
        self._backend = backend
        self._clock = clock
        self._reset_after = timedelta(seconds=int(reset_seconds))
        self._auto_run = auto_run

        self._generation = 0
        self._state = KioskState.IDLE
        self._entered_at = clock()
        self._registering = False
        self._buffer = ""
        self._message = ""
        self._sub_message = ""
        self._ticket: Optional[RegistrationTicket] = None
        self._announcement: Optional[dict] = None

    @property
    def state(self) -> KioskState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def qr_token(self) -> Optional[str]:
        return self._ticket.token if self._ticket else None

    def view(self, now: Optional[datetime] = None) -> KioskView:
        now = now or self._clock()
        remaining = None
        if self._state == KioskState.QR and self._ticket:
            remaining = max(0, int((self._ticket.expires_at - now).total_seconds()))
        return KioskView(
            state=self._state,
            message=self._message,
            sub_message=self._sub_message,
            buffer=self._buffer,
            qr_token=self.qr_token,
            qr_url=self._ticket.url if self._ticket else None,
            qr_seconds_remaining=remaining,
            announcement=self._announcement,
        )

    def handle_key(self, key: str) -> Optional[Submission]:
        state = self._state

        if state in (KioskState.PROCESSING, KioskState.SUCCESS):
            return None

        if key == ESCAPE_KEY:
            self.reset()
            return None

        if state == KioskState.QR:
            return None

        if key == REGISTER_KEY:
            self._enter_register()
            return None

        if key == BACKSPACE_KEY:
            self._buffer = self._buffer[:-1]
            return None

        if key == ENTER_KEY:
            return self._submit()

        if len(key) == 1 and key.isprintable():
            self._buffer += key
            if state in (KioskState.IDLE, KioskState.ERROR):
                if state == KioskState.ERROR:
                    self._message = ""
                    self._sub_message = ""
                self._transition(KioskState.INPUT)
        return None

    def type_card(self, card_id: str) -> Optional[Submission]:
        """Feed a whole reader line: the characters followed by Enter."""

        for ch in card_id:
            self.handle_key(ch)
        return self.handle_key(ENTER_KEY)

    def run(self, submission: Submission) -> bool:
        """Call the backend for ``submission``; False when the result was stale."""

        try:
            if submission.registering:
                outcome = self._backend.begin_registration(submission.card_id)
            else:
                outcome = self._backend.toggle(submission.card_id)
        except DomainError as exc:
            return self._apply_failure(submission, exc)
        except Exception:
            logger.exception("kiosk backend call failed")
            return self._apply_failure(submission, StoreUnavailable())
        return self._apply_success(submission, outcome)

    def tick(self, now: Optional[datetime] = None) -> None:
        """Advance timers: auto-reset after success/error and QR expiry."""

        now = now or self._clock()
        if self._state in (KioskState.SUCCESS, KioskState.ERROR):
            if now - self._entered_at >= self._reset_after:
                self.reset()
        elif self._state == KioskState.QR and self._ticket:
            if now >= self._ticket.expires_at:
                logger.info("registration QR expired on kiosk")
                self.reset()

    def on_registration_status(self, status: dict) -> None:
        """Registration change notification (push or poll) for the displayed token."""

        if self._state != KioskState.QR or not self._ticket:
            return
        if status.get("token") != self._ticket.token:
            return
        if status.get("is_used") or status.get("is_expired"):
            self.reset()

    def on_announcement(self, announcement: Optional[dict]) -> None:
        self._announcement = announcement

    def reset(self) -> None:
        self._generation += 1
        self._registering = False
        self._buffer = ""
        self._message = ""
        self._sub_message = ""
        self._ticket = None
        self._transition(KioskState.IDLE)

    def _enter_register(self) -> None:
        self._registering = True
        self._buffer = ""
        self._message = REGISTER_TITLE
        self._sub_message = REGISTER_PROMPT
        self._transition(KioskState.REGISTER)

    def _submit(self) -> Optional[Submission]:
        card_id = self._buffer.strip()
        self._buffer = ""
        if not card_id:
            return None

        submission = Submission(generation=self._generation, card_id=card_id, registering=self._registering)
        self._transition(KioskState.PROCESSING)
        if self._auto_run:
            self.run(submission)
        return submission

    def _is_stale(self, submission: Submission) -> bool:
        if submission.generation != self._generation or self._state != KioskState.PROCESSING:
            logger.info("dropping stale kiosk result (generation %s, now %s)", submission.generation, self._generation)
            return True
        return False

    def _apply_success(self, submission: Submission, outcome) -> bool:
        if self._is_stale(submission):
            return False

        if isinstance(outcome, RegistrationTicket):
            self._registering = False
            self._ticket = outcome
            self._message = REGISTER_TITLE
            self._sub_message = QR_PROMPT
            self._transition(KioskState.QR)
        elif isinstance(outcome, TapOutcome):
            self._message = outcome.headline
            self._sub_message = outcome.message
            self._transition(KioskState.SUCCESS)
        return True

    def _apply_failure(self, submission: Submission, exc: DomainError) -> bool:
        if self._is_stale(submission):
            return False

        self._registering = False
        self._message = exc.message
        self._sub_message = "" if submission.registering else REGISTER_HINT
        self._transition(KioskState.ERROR)
        return True

    def _transition(self, state: KioskState) -> None:
        if state != self._state:
            logger.debug("kiosk %s -> %s", self._state.value, state.value)
        self._state = state
        self._entered_at = self._clock()
