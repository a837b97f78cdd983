# ragchat/config.py
"""
Centralized configuration module.

Loads environment variables and provides configuration settings
for the RAG session core.
"""

# imports built-in modules
import logging
import os
import sys
from typing import Optional

# imports third-party modules
from dotenv import load_dotenv

# Use basic logger here to avoid circular import with ragchat.utils.logger
logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Google Gemini API
    GOOGLE_API_KEY: Optional[str] = os.getenv("GOOGLE_API_KEY")

    # Gemini Model Configuration
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

    # File Search store lifecycle
    STORE_NAME_PREFIX: str = os.getenv("STORE_NAME_PREFIX", "chat-session")
    UPLOAD_POLL_INTERVAL: float = float(os.getenv("UPLOAD_POLL_INTERVAL", "3"))
    TEARDOWN_TIMEOUT: float = float(os.getenv("TEARDOWN_TIMEOUT", "10"))

    # Querying
    QUERY_MAX_ATTEMPTS: int = int(os.getenv("QUERY_MAX_ATTEMPTS", "3"))
    QUERY_RETRY_BASE_DELAY: float = float(os.getenv("QUERY_RETRY_BASE_DELAY", "1"))
    SUGGESTION_COUNT: int = int(os.getenv("SUGGESTION_COUNT", "6"))

    # File Upload
    MAX_FILE_SIZE_MB: int = int(os.getenv("MAX_FILE_SIZE_MB", "20"))
    UPLOAD_TIMEOUT: int = int(os.getenv("UPLOAD_TIMEOUT", "180"))

    # Logging
    LOGS_DIR: str = os.getenv("LOGS_DIR", "logs")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls) -> bool:
        """Validate required configuration.

        Returns
        -------
        bool
            True if all required configuration is present and sane.
        """
        errors = []

        if not cls.GOOGLE_API_KEY:
            errors.append("GOOGLE_API_KEY environment variable not set")

        if cls.QUERY_MAX_ATTEMPTS < 1:
            errors.append("QUERY_MAX_ATTEMPTS must be at least 1")

        if cls.UPLOAD_POLL_INTERVAL <= 0:
            errors.append("UPLOAD_POLL_INTERVAL must be positive")

        if errors:
            for error in errors:
                logger.error(f"❌ Configuration Error: {error}")
            return False

        return True

    @classmethod
    def validate_or_exit(cls) -> None:
        """Validate configuration and exit if invalid."""
        if not cls.validate():
            sys.exit(1)


# Create a singleton instance for easy access
config = Config()
