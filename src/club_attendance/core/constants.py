"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

REGISTRATION_TTL_MINUTES = 30
REGISTRATION_TOKEN_PREFIX = "qr_"

KIOSK_RESET_SECONDS = 5
STATS_WINDOW_DAYS = 30
DEFAULT_HISTORY_LIMIT = 30

# Generation 10 entered in fiscal year 2025; the fiscal year starts in April.
BASE_GENERATION = 10
BASE_GENERATION_ENTRANCE_YEAR = 2025
FISCAL_YEAR_START_MONTH = 4

REGISTER_KEY = "/"
ESCAPE_KEY = "Escape"
ENTER_KEY = "Enter"
BACKSPACE_KEY = "Backspace"
