from __future__ import annotations

import logging

from flask import Flask, g, jsonify

from ..common.http import error_response, int_arg, json_body, make_guards, month_arg, server_error_response
from ..core.exceptions import DomainError, ValidationError

logger = logging.getLogger(__name__)


def register(app: Flask, container) -> None:
    member_required, admin_required = make_guards(container)
    attendance = container.attendance_service

    @app.route("/api/me", endpoint="me")
    @member_required
    def me():
        try:
            member = g.member
            return jsonify({
                "success": True,
                "member": {
                    "member_id": member.member_id,
                    "display_name": member.display_name,
                    "generation": member.generation,
                    "team_id": member.team_id,
                    "role": member.role.value,
                },
                "status": attendance.current_status(member.member_id).value,
                "history": attendance.get_history_ui(member.member_id),
            }), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("me")

    @app.route("/api/me/attendance", endpoint="my_attendance")
    @member_required
    def my_attendance():
        try:
            month = month_arg()
            days = container.stats_service.monthly_status(g.member.member_id, month)
            return jsonify({
                "success": True,
                "month": month.strftime("%Y-%m"),
                "days": [{"date": d.date.isoformat(), "status": d.status} for d in days],
            }), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("my_attendance")

    @app.route("/api/me/activity", endpoint="my_activity")
    @member_required
    def my_activity():
        try:
            days = int_arg("days", container.settings.stats_window_days)
            if days <= 0:
                raise ValidationError("日数が正しくありません")
            hours = container.stats_service.activity_hours(g.member.member_id, days=days)
            return jsonify({"success": True, "days": days, "hours": round(hours, 2)}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("my_activity")

    @app.route("/api/admin/members/<int:member_id>/toggle", methods=["POST"], endpoint="admin_force_toggle")
    @admin_required
    def admin_force_toggle(member_id: int):
        try:
            result = attendance.force_toggle(member_id)
            return jsonify({"success": True, "message": result.message, "type": result.type.value}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("admin_force_toggle")

    @app.route("/api/admin/members/<int:member_id>/attendance", methods=["POST"], endpoint="admin_force_set")
    @admin_required
    def admin_force_set(member_id: int):
        try:
            event = attendance.force_set(member_id, str(json_body().get("type") or ""))
            return jsonify({
                "success": True,
                "message": "打刻を追加しました。",
                "type": event.type.value,
                "timestamp": event.timestamp.isoformat(),
            }), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("admin_force_set")

    @app.route("/api/admin/attendance/logout-all", methods=["POST"], endpoint="admin_force_logout_all")
    @admin_required
    def admin_force_logout_all():
        try:
            count = attendance.force_logout_all()
            logger.info("admin %s ran force logout (%d affected)", g.member.member_id, count)
            return jsonify({
                "success": True,
                "message": f"{count}人を退勤させました。",
                "affected_count": count,
            }), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("admin_force_logout_all")
