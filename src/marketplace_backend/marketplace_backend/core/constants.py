"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100

MIN_PASSWORD_LENGTH = 8
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 255
PHONE_MIN_LENGTH = 10
PHONE_MAX_LENGTH = 20
AVATAR_URL_MAX_LENGTH = 500

# Fixed for every hash we create; check_password_hash reads it back from the stored value.
PASSWORD_HASH_METHOD = "scrypt:32768:8:1"
PASSWORD_SALT_LENGTH = 16
