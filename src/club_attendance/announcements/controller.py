from __future__ import annotations

from flask import Flask, g, jsonify

from ..common.http import error_response, json_body, make_guards, server_error_response
from ..core.exceptions import DomainError


def register(app: Flask, container) -> None:
    _, admin_required = make_guards(container)
    announcements = container.announcement_service

    @app.route("/api/admin/announcements", methods=["GET"], endpoint="admin_announcements")
    @admin_required
    def admin_announcements():
        try:
            rows = [a.to_dict() for a in announcements.list_all()]
            return jsonify({"success": True, "announcements": rows}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("admin_announcements")

    @app.route("/api/admin/announcements", methods=["POST"], endpoint="admin_create_announcement")
    @admin_required
    def admin_create_announcement():
        try:
            data = json_body()
            announcement_id = announcements.create(
                title=data.get("title") or "",
                content=data.get("content") or "",
                author_id=g.member.member_id,
                is_current=bool(data.get("is_current", False)),
            )
            return jsonify({
                "success": True,
                "message": "お知らせを作成しました。",
                "announcement_id": announcement_id,
            }), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("admin_create_announcement")

    @app.route("/api/admin/announcements/<int:announcement_id>", methods=["PATCH"], endpoint="admin_update_announcement")
    @admin_required
    def admin_update_announcement(announcement_id: int):
        try:
            announcements.update(announcement_id, json_body())
            return jsonify({"success": True, "message": "お知らせを更新しました。"}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("admin_update_announcement")

    @app.route("/api/admin/announcements/<int:announcement_id>", methods=["DELETE"], endpoint="admin_delete_announcement")
    @admin_required
    def admin_delete_announcement(announcement_id: int):
        try:
            announcements.delete(announcement_id)
            return jsonify({"success": True, "message": "お知らせを削除しました。"}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("admin_delete_announcement")
