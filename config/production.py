import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "club_attendance"),
}

APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:5000")

# Empty disables /auth/callback
IDENTITY_CALLBACK_SECRET = os.getenv("IDENTITY_CALLBACK_SECRET", "")

REGISTRATION_TTL_MINUTES = int(os.getenv("REGISTRATION_TTL_MINUTES", "30"))
KIOSK_RESET_SECONDS = int(os.getenv("KIOSK_RESET_SECONDS", "5"))
STATS_WINDOW_DAYS = int(os.getenv("STATS_WINDOW_DAYS", "30"))

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
