"""
Configuration Management for Kharcha

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every tunable number used by the parser, the executor and the
forecasting engine lives in EngineSettings, so nothing is hidden
as a magic constant deep inside a module.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    expenses_sheet_name: str = Field(
        default="Expenses",
        description="Name of the sheet for expense records"
    )
    budgets_sheet_name: str = Field(
        default="Budgets",
        description="Name of the sheet for monthly income/budget baselines"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class EngineSettings(BaseSettings):
    """
    Tunables for the command and forecasting engine.

    Defaults reproduce the documented behaviour. Override through
    KHARCHA_* environment variables.
    """

    model_config = SettingsConfigDict(
        env_prefix="KHARCHA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Input limits
    max_transcript_length: int = Field(
        default=500,
        ge=10,
        description="Longest transcript accepted by the command endpoint"
    )
    max_expense_amount: int = Field(
        default=10_000_000,
        ge=1,
        description="Largest amount a voice command may add (sanity check)"
    )

    # Query defaults
    recent_expenses_in_result: int = Field(
        default=5,
        ge=1,
        description="How many recent records a spending query returns"
    )
    default_top_categories: int = Field(
        default=3,
        ge=1,
        description="Categories returned when the user doesn't say how many"
    )
    default_last_expenses: int = Field(
        default=5,
        ge=1,
        description="Records returned when the user doesn't say how many"
    )
    average_week_window: int = Field(
        default=8,
        ge=1,
        description="Number of trailing weeks averaged for weekly spending"
    )

    # Classifier
    max_suggested_tags: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Maximum tags suggested for a new expense"
    )

    # Forecasting
    forecast_history_months: int = Field(
        default=6,
        ge=1,
        le=24,
        description="Months of history the forecast looks at"
    )
    forecast_min_records: int = Field(
        default=10,
        ge=1,
        description="Records needed before a forecast is attempted"
    )
    forecast_recent_months: int = Field(
        default=2,
        ge=1,
        description="Months used for the per-category short-window prediction"
    )
    festival_months: str = Field(
        default="3,4,10,11,12",
        description="Comma-separated festival months (1-12) for the seasonal uplift"
    )
    seasonal_factor: float = Field(
        default=1.5,
        ge=1.0,
        description="Multiplier applied to irregular categories in festival months"
    )
    max_irregular_probability: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        description="Upper bound on an irregular category's probability"
    )

    @property
    def festival_months_set(self) -> frozenset[int]:
        """Get festival months as a set of month numbers."""
        return frozenset(
            int(month.strip())
            for month in self.festival_months.split(",")
            if month.strip()
        )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for local structured logs"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def engine(self) -> EngineSettings:
        return EngineSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.engine
        results["engine"] = True
    except Exception as e:
        results["engine"] = False
        results["engine_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
