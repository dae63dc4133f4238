from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from ..common.cards import normalize_card_id
from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty, require_positive_int
from ..core.constants import REGISTRATION_TOKEN_PREFIX, REGISTRATION_TTL_MINUTES
from ..core.exceptions import (
    AlreadyRegistered,
    AlreadyUsed,
    DuplicateIdentity,
    Expired,
    InvalidSession,
    NotFound,
    Unauthenticated,
    ValidationError,
)
from ..database.mysql_base import store_errors
from ..members.model import ExternalIdentity, Member
from ..members.repository import MemberRepository
from ..members.team_repository import TeamRepository
from .model import RegistrationDetails, TempRegistration
from .qr import render_qr_png
from .repository import RegistrationRepository

logger = logging.getLogger(__name__)


def new_registration_token() -> str:
    return f"{REGISTRATION_TOKEN_PREFIX}{secrets.token_urlsafe(24)}"


class RegistrationService:
    """Time-boxed QR handshake that binds an unregistered card to a new member.

    The token is a capability: holding it is enough to view the pending
    registration, but completing it also needs a verified external identity.
    """

    def __init__(
        self,
        registrations: RegistrationRepository,
        members: MemberRepository,
        teams: TeamRepository,
        *,
        base_url: str,
        ttl_minutes: int = REGISTRATION_TTL_MINUTES,
        clock: Callable[[], datetime] = now_local,
        token_factory: Callable[[], str] = new_registration_token,
    ):
        self._registrations = registrations
        self._members = members
        self._teams = teams
        self._base_url = base_url.rstrip("/")
        self._ttl = timedelta(minutes=int(ttl_minutes))
        self._clock = clock
        self._token_factory = token_factory

    def registration_url(self, token: str) -> str:
        return f"{self._base_url}/register/{token}"

    def registration_qr_png(self, token: str) -> bytes:
        return render_qr_png(self.registration_url(token))

    def begin_registration(self, card_id: str, *, now: Optional[datetime] = None) -> TempRegistration:
        normalized = normalize_card_id(card_id)
        now = now or self._clock()

        with store_errors("begin_registration"):
            if self._members.get_by_card_id(normalized):
                raise AlreadyRegistered()

            registration = self._registrations.upsert_for_card(
                card_id=normalized,
                token=self._token_factory(),
                created_at=now,
                expires_at=now + self._ttl,
            )
        logger.info("temp registration %s issued for card %s", registration.registration_id, normalized)
        return registration

    def fetch_registration(self, token: str, *, now: Optional[datetime] = None) -> TempRegistration:
        with store_errors("fetch_registration"):
            registration = self._registrations.get_by_token(token)
            if not registration:
                raise NotFound("登録セッションが見つかりません。")

            if registration.accessed_at is None:
                accessed_at = now or self._clock()
                if self._registrations.mark_accessed(
                    registration_id=registration.registration_id, accessed_at=accessed_at
                ):
                    registration = registration.with_accessed(accessed_at)
                else:
                    registration = self._registrations.get_by_token(token) or registration
        return registration

    def registration_status(self, token: str, *, now: Optional[datetime] = None) -> dict:
        """Read-only view polled by the kiosk while it shows the QR code."""

        now = now or self._clock()
        with store_errors("registration_status"):
            registration = self._registrations.get_by_token(token)
        if not registration:
            raise NotFound("登録セッションが見つかりません。")

        return {
            "token": registration.token,
            "is_used": registration.is_used,
            "accessed": registration.accessed_at is not None,
            "is_expired": registration.is_expired(now),
            "expires_at": registration.expires_at.isoformat(),
            "seconds_remaining": registration.seconds_remaining(now),
        }

    def complete_registration(
        self,
        token: str,
        details: RegistrationDetails,
        identity: Optional[ExternalIdentity],
        *,
        now: Optional[datetime] = None,
    ) -> Member:
        now = now or self._clock()

        with store_errors("complete_registration"):
            registration = self._registrations.get_by_token(token) if token else None
            if not registration:
                raise InvalidSession()
            if registration.is_used:
                raise AlreadyUsed()
            if registration.is_expired(now):
                raise Expired()
            if identity is None or not identity.is_verified:
                raise Unauthenticated()

            details = self._validate_details(details)

            if self._members.get_by_external_id(identity.provider_id):
                raise DuplicateIdentity(DuplicateIdentity.EXTERNAL_IDENTITY)
            if self._members.get_by_display_name(details.display_name):
                raise DuplicateIdentity(DuplicateIdentity.DISPLAY_NAME)

            member = self._registrations.complete(
                registration_id=registration.registration_id,
                external_id=identity.provider_id,
                details=details,
            )
            if member is None:
                raise AlreadyUsed()

        logger.info("registration %s completed as member %s", registration.registration_id, member.member_id)
        return member

    def list_registrations(self) -> Sequence[TempRegistration]:
        with store_errors("list_registrations"):
            return self._registrations.list_all()

    def delete_registration(self, registration_id: int) -> None:
        with store_errors("delete_registration"):
            if not self._registrations.delete(registration_id=int(registration_id)):
                raise NotFound("仮登録が見つかりません。")

    def _validate_details(self, details: RegistrationDetails) -> RegistrationDetails:
        display_name = require_non_empty(details.display_name, "表示名")
        generation = require_positive_int(details.generation, "期生")
        team_id = require_positive_int(details.team_id, "班")
        if not self._teams.get_by_id(team_id):
            raise ValidationError("班が存在しません")

        student_number = (details.student_number or "").strip() or None
        return RegistrationDetails(
            display_name=display_name,
            generation=generation,
            team_id=team_id,
            student_number=student_number,
        )
