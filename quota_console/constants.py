"""
Application constants and environment-driven defaults.
"""
import os

# Logging
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/quota-console"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"

# Database
DEFAULT_DATABASE_URL = "sqlite:///./quota_console.db"

# CORS settings for the console frontend
CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "QUOTA_CONSOLE_CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")
    if origin.strip()
]

# Quota units per display dollar
QUOTA_PER_UNIT = int(os.getenv("QUOTA_CONSOLE_QUOTA_PER_UNIT", "500000"))

# User roles
ROLE_COMMON_USER = 1
ROLE_ADMIN_USER = 10
ROLE_ROOT_USER = 100

# Generic enabled/disabled status shared by users and groups
STATUS_ENABLED = 1
STATUS_DISABLED = 2

DEFAULT_USER_GROUP = "default"

# Check-in defaults (used when no config row exists yet)
CHECKIN_DEFAULT_MIN_QUOTA = 100
CHECKIN_DEFAULT_MAX_QUOTA = 100
CHECKIN_DEFAULT_CONSECUTIVE_REWARD_QUOTA = 50
CHECKIN_STREAK_LOOKBACK_DAYS = 30
CHECKIN_HISTORY_STREAK_MAX_DAYS = 365
CHECKIN_CODE_MAX_LENGTH = 20

# Pagination
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Log types
LOG_TYPE_UNKNOWN = 0
LOG_TYPE_TOPUP = 1
LOG_TYPE_CONSUME = 2
LOG_TYPE_MANAGE = 3
LOG_TYPE_SYSTEM = 4
LOG_TYPE_ERROR = 5

# Option keys for sign-up group auto assignment, one per login method
SIGNUP_METHODS = {
    "github": "UserGroupForGitHub",
    "email": "UserGroupForEmail",
    "password": "UserGroupForPassword",
    "discord": "UserGroupForDiscord",
    "telegram": "UserGroupForTelegram",
    "wechat": "UserGroupForWeChat",
    "oidc": "UserGroupForOIDC",
    "linuxdo": "UserGroupForLinuxDO",
}

OPTION_GROUP_RATIO = "GroupRatio"
