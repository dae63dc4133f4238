from __future__ import annotations

from flask import Flask, g, jsonify

from ..common.http import error_response, make_guards, month_arg, server_error_response
from ..core.exceptions import DomainError


def register(app: Flask, container) -> None:
    member_required, _ = make_guards(container)
    stats = container.stats_service

    @app.route("/api/stats/summary", endpoint="stats_summary")
    @member_required
    def stats_summary():
        try:
            month = month_arg()
            summary = stats.daily_summary(month)
            return jsonify({
                "success": True,
                "month": month.strftime("%Y-%m"),
                "days": [summary[d].to_dict() for d in sorted(summary)],
            }), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("stats_summary")

    @app.route("/api/teams", endpoint="teams_overview")
    @member_required
    def teams_overview():
        try:
            return jsonify({"success": True, "teams": stats.teams_with_member_status()}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("teams_overview")

    @app.route("/api/teams/<int:team_id>", endpoint="team_detail")
    @member_required
    def team_detail(team_id: int):
        try:
            return jsonify({"success": True, **stats.team_detail(team_id, viewer=g.member)}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("team_detail")
