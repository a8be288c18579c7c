from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

ALLOWED_RATE_PROVIDERS = {"static", "exchangerate-api", "fixer"}


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG,
    DATA_DIR, DB_FILENAME, REPORTING_CURRENCY, EXCHANGE_API_KEY, FIXER_API_KEY).
    """

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore"
    )

    # Basic app metadata
    app_name: str = "Expense Tracker"
    debug: bool = False
    version: str = "0.1.0"

    # Data & persistence
    data_dir: Path = Path("data")
    db_filename: str = "expenses.sqlite3"
    db_path: Optional[Path] = None  # derived if not provided

    # Every expense stores its amount converted into this currency
    reporting_currency: str = "COP"

    # Exchange rate refresh, tried in order until one succeeds
    rate_providers: List[str] = ["exchangerate-api", "fixer"]
    exchange_api_key: Optional[str] = None
    exchange_api_base_url: str = "https://v6.exchangerate-api.com/v6"
    fixer_api_key: Optional[str] = None
    fixer_api_base_url: str = "http://data.fixer.io/api"
    http_timeout_seconds: float = 10.0
    http_retries: int = 2

    # Recurring expenses / reminders
    default_reminder_days_advance: int = 1
    upcoming_window_days: int = 7

    def init_post_load(self) -> None:
        """Finalize derived fields and ensure directories exist."""
        if self.db_path is None:
            self.db_path = self.data_dir / self.db_filename
        # Ensure persistence directory exists
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.reporting_currency = self.reporting_currency.upper()
        if len(self.reporting_currency) != 3 or not self.reporting_currency.isalpha():
            raise ValueError(
                f"Invalid reporting_currency '{self.reporting_currency}': expected a 3-letter code"
            )
        unknown = [p for p in self.rate_providers if p not in ALLOWED_RATE_PROVIDERS]
        if unknown:
            raise ValueError(
                f"Unsupported rate_providers {unknown}. Allowed: {sorted(ALLOWED_RATE_PROVIDERS)}"
            )


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
