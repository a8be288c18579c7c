"""Domain constants and enumerations for validation."""

from enum import Enum

PIVOT_CURRENCY = "USD"
CURRENCY_CODE_PATTERN = r"^[A-Za-z]{3}$"
HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"

DEFAULT_CATEGORY_COLOR = "#3B82F6"
DEFAULT_CATEGORY_ICON = "shopping-cart"

MAX_REMINDER_DAYS_ADVANCE = 30


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

