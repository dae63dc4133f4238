from __future__ import annotations

import logging

from flask import Flask, g, jsonify

from ..common.http import error_response, identity_from_session, json_body, make_guards, server_error_response
from ..core.exceptions import DomainError
from .model import RegistrationDetails, TempRegistration

logger = logging.getLogger(__name__)


def _registration_dict(r: TempRegistration, now) -> dict:
    return {
        "registration_id": r.registration_id,
        "card_id": r.card_id,
        "token": r.token,
        "created_at": r.created_at.isoformat(),
        "expires_at": r.expires_at.isoformat(),
        "accessed_at": r.accessed_at.isoformat() if r.accessed_at else None,
        "is_used": r.is_used,
        "is_expired": r.is_expired(now),
    }


def register(app: Flask, container) -> None:
    _, admin_required = make_guards(container)
    service = container.registration_service

    @app.route("/api/register/<token>", methods=["GET"], endpoint="fetch_registration")
    def fetch_registration(token: str):
        try:
            now = container.clock()
            registration = service.fetch_registration(token, now=now)
            teams = container.team_service.list_teams()
            return jsonify({
                "success": True,
                "registration": {
                    "token": registration.token,
                    "is_used": registration.is_used,
                    "is_expired": registration.is_expired(now),
                    "expires_at": registration.expires_at.isoformat(),
                },
                "teams": [{"team_id": t.team_id, "name": t.name} for t in teams],
                "authenticated": identity_from_session() is not None,
            }), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("fetch_registration")

    @app.route("/api/register/<token>", methods=["POST"], endpoint="complete_registration")
    def complete_registration(token: str):
        try:
            data = json_body()
            details = RegistrationDetails(
                display_name=data.get("display_name") or "",
                generation=data.get("generation"),
                team_id=data.get("team_id"),
                student_number=data.get("student_number"),
            )
            member = service.complete_registration(token, details, identity_from_session())
            return jsonify({
                "success": True,
                "message": "登録が完了しました。",
                "member": {
                    "member_id": member.member_id,
                    "display_name": member.display_name,
                    "generation": member.generation,
                    "team_id": member.team_id,
                },
            }), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("complete_registration")

    @app.route("/api/admin/registrations", endpoint="admin_registrations")
    @admin_required
    def admin_registrations():
        try:
            now = container.clock()
            rows = service.list_registrations()
            return jsonify({"success": True, "registrations": [_registration_dict(r, now) for r in rows]}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("admin_registrations")

    @app.route("/api/admin/registrations/<int:registration_id>", methods=["DELETE"], endpoint="admin_delete_registration")
    @admin_required
    def admin_delete_registration(registration_id: int):
        try:
            service.delete_registration(registration_id)
            logger.info("admin %s deleted temp registration %s", g.member.member_id, registration_id)
            return jsonify({"success": True, "message": "仮登録を削除しました。"}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("admin_delete_registration")
