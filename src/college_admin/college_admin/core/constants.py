"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_DETAIN_THRESHOLD = 75.0
DEFAULT_COURSE_CREDITS = 3
DEFAULT_PAGE_SIZE = 10
DEFAULT_COURSE_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
RECENT_IDENTITIES_LIMIT = 5
MIN_PASSWORD_LENGTH = 6

SEMESTER_RANGE = (1, 8)
CREDIT_RANGE = (1, 6)
