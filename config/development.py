import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "club_attendance"),
}

# Base of the registration links encoded in kiosk QR codes
APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:5000")

# Shared with the identity provider gateway that posts verified principals to /auth/callback
IDENTITY_CALLBACK_SECRET = os.getenv("IDENTITY_CALLBACK_SECRET", "dev-callback-secret")

REGISTRATION_TTL_MINUTES = int(os.getenv("REGISTRATION_TTL_MINUTES", "30"))
KIOSK_RESET_SECONDS = int(os.getenv("KIOSK_RESET_SECONDS", "5"))
STATS_WINDOW_DAYS = int(os.getenv("STATS_WINDOW_DAYS", "30"))

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed teams and demo members on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
