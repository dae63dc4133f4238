from __future__ import annotations

import hmac
import logging
from datetime import date
from functools import wraps
from typing import Optional

from flask import g, jsonify, request, session

from ..core.exceptions import (
    AlreadyRegistered,
    AlreadyUsed,
    AuthenticationError,
    AuthorizationError,
    DomainError,
    DuplicateIdentity,
    Expired,
    NotFound,
    StoreUnavailable,
    TeamInUse,
    ValidationError,
)
from ..members.model import ExternalIdentity
from .datetime_utils import parse_month

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "システムエラーが発生しました。時間をおいて再度お試しください。"

IDENTITY_SESSION_KEY = "identity"
CALLBACK_SECRET_HEADER = "X-Identity-Callback-Secret"

_STATUS = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFound, 404),
    (Expired, 410),
    (AlreadyRegistered, 409),
    (AlreadyUsed, 409),
    (DuplicateIdentity, 409),
    (TeamInUse, 409),
    (StoreUnavailable, 503),
)


def status_for(exc: DomainError) -> int:
    for cls, status in _STATUS:
        if isinstance(exc, cls):
            return status
    return 400


def error_response(exc: DomainError):
    body = {"success": False, "message": exc.message}
    if isinstance(exc, DuplicateIdentity):
        body["field"] = exc.field
    return jsonify(body), status_for(exc)


def server_error_response(operation: str):
    logger.exception("unexpected failure in %s", operation)
    return jsonify({"success": False, "message": SERVER_ERROR_MESSAGE}), 500


def identity_from_session() -> Optional[ExternalIdentity]:
    """Principal stored by the identity provider callback, if any."""

    raw = session.get(IDENTITY_SESSION_KEY)
    if not isinstance(raw, dict):
        return None
    identity = ExternalIdentity(
        subject=str(raw.get("subject") or ""),
        provider_id=str(raw.get("provider_id") or ""),
        display_name=raw.get("display_name"),
    )
    return identity if identity.is_verified else None


def store_identity(identity: ExternalIdentity) -> None:
    session.clear()
    session[IDENTITY_SESSION_KEY] = {
        "subject": identity.subject,
        "provider_id": identity.provider_id,
        "display_name": identity.display_name,
    }


def callback_secret_matches(configured: str) -> bool:
    """Constant-time check of the gateway's ``X-Identity-Callback-Secret`` header."""

    supplied = request.headers.get(CALLBACK_SECRET_HEADER, "")
    return bool(configured) and hmac.compare_digest(supplied.encode(), configured.encode())


def make_guards(container):
    """``member_required`` / ``admin_required`` decorators bound to ``container``.

    Both put the resolved Member on ``flask.g.member``.
    """

    def member_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                g.member = container.member_service.member_for_identity(identity_from_session())
            except DomainError as e:
                return error_response(e)
            return view(*args, **kwargs)

        return wrapper

    def admin_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                g.member = container.member_service.require_admin(identity_from_session())
            except DomainError as e:
                return error_response(e)
            return view(*args, **kwargs)

        return wrapper

    return member_required, admin_required


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def month_arg(name: str = "month") -> date:
    return parse_month(request.args.get(name) or None)


def int_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} は整数で指定してください")
