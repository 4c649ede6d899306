"""
Application-wide constants.

This module centralizes the magic strings and numbers used by the store and
the data access layer.
"""
from decimal import Decimal
from enum import Enum


# Money is stored with two fractional digits
CURRENCY_QUANTUM = Decimal("0.01")
ZERO_AMOUNT = Decimal("0.00")


class UserActionKind(str, Enum):
    """
    Kind of event recorded in a user's action log.

    The UI logs one of these every time a user does something worth auditing.
    """

    # Session
    LOGIN = 'LOGIN'
    LOGOUT = 'LOGOUT'

    # Till
    SALE = 'SALE'

    # Administration
    USER_CREATED = 'USER_CREATED'
    USER_MODIFIED = 'USER_MODIFIED'
    USER_REMOVED = 'USER_REMOVED'
    PRODUCT_CREATED = 'PRODUCT_CREATED'
    PRODUCT_MODIFIED = 'PRODUCT_MODIFIED'
    PRODUCT_REMOVED = 'PRODUCT_REMOVED'
    CATEGORY_CREATED = 'CATEGORY_CREATED'
    CATEGORY_REMOVED = 'CATEGORY_REMOVED'
    SETTINGS_CHANGED = 'SETTINGS_CHANGED'

    @classmethod
    def values(cls) -> list[str]:
        """All stored values, in declaration order."""
        return [kind.value for kind in cls]

    @classmethod
    def get_ui_label(cls, kind: 'UserActionKind') -> str:
        """Get human-readable label for UI display"""
        labels = {
            cls.LOGIN: "Logged in",
            cls.LOGOUT: "Logged out",
            cls.SALE: "Registered a sale",
            cls.USER_CREATED: "Created a user",
            cls.USER_MODIFIED: "Modified a user",
            cls.USER_REMOVED: "Removed a user",
            cls.PRODUCT_CREATED: "Created a product",
            cls.PRODUCT_MODIFIED: "Modified a product",
            cls.PRODUCT_REMOVED: "Removed a product",
            cls.CATEGORY_CREATED: "Created a category",
            cls.CATEGORY_REMOVED: "Removed a category",
            cls.SETTINGS_CHANGED: "Changed the settings",
        }
        return labels.get(kind, "Unknown action")


class StoreDefaults:
    """Default locations and tuning of the embedded store"""
    DATA_DIR_NAME = '.lightpos'
    DB_FILENAME = 'lightpos.db'
    CONFIG_CACHE_FILENAME = 'lightpos.config.json'
    LOG_DIR_NAME = 'logs'
    LOG_FILENAME = 'lightpos.log'
    BUSY_TIMEOUT_MS = 5000


class LogDefaults:
    """Rotating log file settings"""
    FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    MAX_BYTES = 10 * 1024 * 1024  # 10MB
    BACKUP_COUNT = 5


class EnvVars:
    """Environment variables read by the configuration loader"""
    DATA_DIR = 'LIGHTPOS_DATA_DIR'
    DB_FILENAME = 'LIGHTPOS_DB_FILENAME'
    LOG_DIR = 'LIGHTPOS_LOG_DIR'
    SQL_ECHO = 'LIGHTPOS_SQL_ECHO'
    OVERWRITE_DB = 'LIGHTPOS_OVERWRITE_DB'
