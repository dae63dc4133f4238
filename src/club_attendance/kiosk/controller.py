from __future__ import annotations

from io import BytesIO

from flask import Flask, jsonify, send_file

from ..common.http import error_response, json_body, server_error_response
from ..core.exceptions import DomainError


def register(app: Flask, container) -> None:
    @app.route("/api/kiosk/tap", methods=["POST"], endpoint="kiosk_tap")
    def kiosk_tap():
        try:
            outcome = container.kiosk_backend.toggle(str(json_body().get("card_id") or ""))
            return jsonify({
                "success": True,
                "message": outcome.message,
                "headline": outcome.headline,
                "type": outcome.type.value,
                "duplicate": outcome.duplicate,
                "member": {
                    "member_id": outcome.member_id,
                    "display_name": outcome.display_name,
                    "team_name": outcome.team_name,
                    "generation": outcome.generation,
                },
            }), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("kiosk_tap")

    @app.route("/api/kiosk/registrations", methods=["POST"], endpoint="kiosk_begin_registration")
    def kiosk_begin_registration():
        try:
            ticket = container.kiosk_backend.begin_registration(str(json_body().get("card_id") or ""))
            return jsonify({
                "success": True,
                "token": ticket.token,
                "url": ticket.url,
                "expires_at": ticket.expires_at.isoformat(),
            }), 201
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("kiosk_begin_registration")

    @app.route("/api/kiosk/registrations/<token>/status", endpoint="kiosk_registration_status")
    def kiosk_registration_status(token: str):
        try:
            return jsonify({"success": True, **container.kiosk_backend.registration_status(token)}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("kiosk_registration_status")

    @app.route("/api/kiosk/announcement", endpoint="kiosk_announcement")
    def kiosk_announcement():
        try:
            return jsonify({"success": True, "announcement": container.kiosk_backend.current_announcement()}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("kiosk_announcement")

    @app.route("/register/<token>/qr.png", endpoint="registration_qr")
    def registration_qr(token: str):
        try:
            # Only render codes for tokens that exist.
            container.registration_service.registration_status(token)
            png = container.registration_service.registration_qr_png(token)
            return send_file(BytesIO(png), mimetype="image/png", download_name="register.png")
        except DomainError as e:
            return error_response(e)
        except Exception:
            return server_error_response("registration_qr")
