"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

IDENTITY_TOKEN_HOURS = 24
DEFAULT_QR_EXPIRY_MINUTES = 5
MAX_QR_EXPIRY_MINUTES = 24 * 60
ATTENDANCE_PURPOSE = "attendance"

MIN_PASSWORD_LENGTH = 6
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 200

NFC_TAG_PREFIX = "nfc_"
NOTIFICATION_LOOKBACK_DAYS = 7
NOTIFICATION_RECENT_LIMIT = 3
