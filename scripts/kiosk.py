"""Terminal kiosk for a keyboard-emulating card reader.

Each input line is one reader swipe (characters + Enter). A line holding
only ``/`` switches to registration mode; ``esc`` cancels.
"""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for p in (REPO_ROOT, REPO_ROOT / "src"):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from dotenv import load_dotenv

from config import get_settings_module

from club_attendance.container import Settings, build_container
from club_attendance.core.constants import ESCAPE_KEY, REGISTER_KEY
from club_attendance.kiosk.state_machine import KioskSession
from club_attendance.kiosk.subscription import ChangeSubscription


def _render(session: KioskSession) -> None:
    view = session.view()
    print(f"[{view.state.value}] {view.message}")
    if view.sub_message:
        print(f"    {view.sub_message}")
    if view.qr_url:
        print(f"    {view.qr_url}")
        print(f"    {view.countdown_label}")
    if view.announcement:
        print(f"    お知らせ: {view.announcement['title']}")


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(db_config=dict(settings.DB_CONFIG), settings=Settings.from_module(settings))
    backend = container.kiosk_backend
    session = KioskSession(backend, reset_seconds=container.settings.kiosk_reset_seconds)

    announcements = ChangeSubscription(backend.current_announcement, session.on_announcement, name="announcement")

    def fetch_registration():
        return backend.registration_status(session.qr_token) if session.qr_token else None

    def on_registration(status):
        if status:
            session.on_registration_status(status)

    registration = ChangeSubscription(fetch_registration, on_registration, name="registration")

    for line in sys.stdin:
        session.tick()
        announcements.poll()
        registration.poll()

        line = line.strip()
        if line.lower() == "esc":
            session.handle_key(ESCAPE_KEY)
        elif line == REGISTER_KEY:
            session.handle_key(REGISTER_KEY)
        elif line:
            session.type_card(line)
        _render(session)


if __name__ == "__main__":
    main()
