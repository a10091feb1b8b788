"""
Constants used across the FieldLines services.
"""

# Authentication
ACCESS_TOKEN_EXPIRE_DAYS = 30
MAX_FAILED_LOGIN_ATTEMPTS = 5
ACCOUNT_LOCK_MINUTES = 15
RESET_TOKEN_EXPIRE_HOURS = 24
MIN_PASSWORD_LENGTH = 8

# Invitations
INVITATION_EXPIRE_DAYS = 7

# Bookings
BOOKING_REFERENCE_PREFIX = "BK"
BOOKING_GROUP_REFERENCE_PREFIX = "BKG"
REFERENCE_NUMBER_MAX_ATTEMPTS = 10
BOOKING_NOTES_MAX_LENGTH = 500
CANCELLATION_NOTICE_HOURS = 48
MAX_BATCH_BOOKINGS = 20

PREFERRED_TIME_LABELS = {
    "morning": "Morning (8am - 12pm)",
    "afternoon": "Afternoon (12pm - 4pm)",
    "evening": "Evening (4pm - 7pm)",
    "flexible": "Flexible",
}

# Pagination
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Sportsgrounds
DEFAULT_MAP_ZOOM = 18

# Settings
MAINTENANCE_MODE_KEY = "maintenance_mode"
MAINTENANCE_MESSAGE_KEY = "maintenance_message"
DEFAULT_MAINTENANCE_MESSAGE = (
    "The system is currently undergoing maintenance. Please try again later."
)
