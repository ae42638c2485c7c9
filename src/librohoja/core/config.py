"""
Configuration module for LibroHoja.

This module defines the Settings class, which loads environment variables
and provides application-wide configuration: where the spreadsheet files
live, how long writers wait for a collection lock, circulation limits and
the optional OpenAI credentials used by the assistant.

Usage:
    Import the `settings` object to access configuration throughout the project.
"""

import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()

NO_API_KEY = "NO_API_KEY_SET"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        DATA_DIR (str): Directory holding one .xlsx workbook per collection.
        STORE_LOCK_TIMEOUT (float): Seconds a writer waits for a collection lock.
        MAX_ACTIVE_CHECKOUTS (int): Active loans a single user may hold.
        LOAN_PERIOD_DAYS (int): Default loan length used for the due date.
        OPENAI_API_KEY (str): API key for OpenAI services.
        OPENAI_MODEL (str): Chat model used by the assistant.
        DEMO_PASSWORD (str): Password given to the seeded demo accounts.
        BCRYPT_ROUNDS (int): bcrypt cost factor for new password hashes.
    """
    DATA_DIR: str = os.getenv("DATA_DIR", "./data")
    STORE_LOCK_TIMEOUT: float = float(os.getenv("STORE_LOCK_TIMEOUT", "5.0"))
    MAX_ACTIVE_CHECKOUTS: int = int(os.getenv("MAX_ACTIVE_CHECKOUTS", "5"))
    LOAN_PERIOD_DAYS: int = int(os.getenv("LOAN_PERIOD_DAYS", "14"))
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", NO_API_KEY)
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    DEMO_PASSWORD: str = os.getenv("DEMO_PASSWORD", "password123")
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

    @property
    def ai_enabled(self) -> bool:
        """
        Whether a usable OpenAI key is configured.

        Returns:
            bool: False for an empty key or one of the placeholder values.
        """
        key = (self.OPENAI_API_KEY or "").strip()
        return bool(key) and key not in (NO_API_KEY, "your-openai-api-key")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
