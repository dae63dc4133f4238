from __future__ import annotations

import logging

from flask import Flask, g, jsonify, session

from ..common.http import (
    callback_secret_matches,
    error_response,
    int_arg,
    json_body,
    make_guards,
    server_error_response,
    store_identity,
)
from ..core.exceptions import AuthenticationError, DomainError, ValidationError
from .model import ExternalIdentity

logger = logging.getLogger(__name__)


def register(app: Flask, container) -> None:
    _, admin_required = make_guards(container)
    members = container.member_service
    teams = container.team_service

    @app.route("/auth/callback", methods=["POST"], endpoint="auth_callback")
    def auth_callback():
        """Identity provider gateway hands over a verified principal."""

        try:
            if not callback_secret_matches(app.config.get("IDENTITY_CALLBACK_SECRET", "")):
                raise AuthenticationError("認証コールバックが無効です。")
            data = json_body()
            identity = ExternalIdentity(
                subject=str(data.get("subject") or "").strip(),
                provider_id=str(data.get("provider_id") or "").strip(),
                display_name=data.get("display_name") or None,
            )
            if not identity.is_verified:
                raise ValidationError("認証情報が不足しています。")

            store_identity(identity)
            registered = members.is_registered(identity)
            logger.info("signed in provider_id=%s registered=%s", identity.provider_id, registered)
            return jsonify({"success": True, "registered": registered}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("auth_callback")

    @app.route("/auth/signout", methods=["POST"], endpoint="signout")
    def signout():
        session.clear()
        return jsonify({"success": True, "message": "ログアウトしました。"}), 200

    @app.route("/api/admin/members", endpoint="admin_members")
    @admin_required
    def admin_members():
        try:
            return jsonify({"success": True, "members": members.list_admin_view()}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("admin_members")

    @app.route("/api/admin/members/<int:member_id>", methods=["PATCH"], endpoint="admin_update_member")
    @admin_required
    def admin_update_member(member_id: int):
        try:
            changed = members.update_member(editor_id=g.member.member_id, member_id=member_id, changes=json_body())
            message = "ユーザー情報を更新しました。" if changed else "変更はありません。"
            return jsonify({"success": True, "message": message, "changed": changed}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("admin_update_member")

    @app.route("/api/admin/teams", methods=["GET"], endpoint="admin_teams")
    @admin_required
    def admin_teams():
        try:
            rows = [{"team_id": t.team_id, "name": t.name} for t in teams.list_teams()]
            return jsonify({"success": True, "teams": rows}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("admin_teams")

    @app.route("/api/admin/teams", methods=["POST"], endpoint="admin_create_team")
    @admin_required
    def admin_create_team():
        try:
            team_id = teams.create_team(json_body().get("name") or "")
            return jsonify({"success": True, "message": "班を作成しました。", "team_id": team_id}), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("admin_create_team")

    @app.route("/api/admin/teams/<int:team_id>", methods=["PATCH"], endpoint="admin_rename_team")
    @admin_required
    def admin_rename_team(team_id: int):
        try:
            teams.rename_team(team_id, json_body().get("name") or "")
            return jsonify({"success": True, "message": "班を更新しました。"}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("admin_rename_team")

    @app.route("/api/admin/teams/<int:team_id>", methods=["DELETE"], endpoint="admin_delete_team")
    @admin_required
    def admin_delete_team(team_id: int):
        try:
            teams.delete_team(team_id)
            return jsonify({"success": True, "message": "班を削除しました。"}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("admin_delete_team")

    @app.route("/api/admin/logs/user-edits", endpoint="admin_user_edit_logs")
    @admin_required
    def admin_user_edit_logs():
        try:
            rows = container.audit_service.user_edits(limit=int_arg("limit", 200))
            return jsonify({
                "success": True,
                "logs": [
                    {
                        "log_id": r.log_id,
                        "editor_id": r.editor_id,
                        "target_id": r.target_id,
                        "field_name": r.field_name,
                        "old_value": r.old_value,
                        "new_value": r.new_value,
                        "created_at": r.created_at.isoformat() if r.created_at else None,
                    }
                    for r in rows
                ],
            }), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("admin_user_edit_logs")

    @app.route("/api/admin/logs/daily-logout", endpoint="admin_logout_logs")
    @admin_required
    def admin_logout_logs():
        try:
            rows = container.audit_service.logout_runs(limit=int_arg("limit", 200))
            return jsonify({
                "success": True,
                "logs": [
                    {
                        "log_id": r.log_id,
                        "affected_count": r.affected_count,
                        "status": r.status.value,
                        "executed_at": r.executed_at.isoformat() if r.executed_at else None,
                    }
                    for r in rows
                ],
            }), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("admin_logout_logs")
