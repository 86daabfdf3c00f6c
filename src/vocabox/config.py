"""Configuration settings for vocabox."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(BASE_DIR / env_file)

# Leitner box settings
MIN_BOX = 1
MAX_BOX = 5
FIRST_CORRECT_BOX = 2  # an unseen word answered correctly skips box 1
ANSWER_SEPARATOR = ";"


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///vocabox.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class LearningSettings:
    """Leitner box settings."""
    min_box: int = MIN_BOX
    max_box: int = MAX_BOX
    first_correct_box: int = FIRST_CORRECT_BOX
    answer_separator: str = ANSWER_SEPARATOR


@dataclass
class AuthSettings:
    """Session and credential settings."""
    admin_passphrase_hash: str = os.getenv("ADMIN_PASSPHRASE_HASH", "")
    session_lifetime_minutes: int = int(os.getenv("SESSION_LIFETIME_MINUTES", "480"))


@dataclass
class MonitoringSettings:
    """Prometheus exporter settings."""
    port: int = int(os.getenv("METRICS_PORT", "0"))


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_learning_settings() -> LearningSettings:
    """Get learning settings."""
    return LearningSettings()


def get_auth_settings() -> AuthSettings:
    """Get auth settings."""
    return AuthSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    learning: LearningSettings = field(default_factory=get_learning_settings)
    auth: AuthSettings = field(default_factory=get_auth_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if not self.database.url:
            raise ValueError("DATABASE_URL is required")

        if self.learning.min_box < 1 or self.learning.min_box >= self.learning.max_box:
            raise ValueError("Box range must start at 1 and contain at least two boxes")

        if not self.learning.min_box < self.learning.first_correct_box <= self.learning.max_box:
            raise ValueError("FIRST_CORRECT_BOX must lie above the first box")

        if self.auth.session_lifetime_minutes < 1:
            raise ValueError("SESSION_LIFETIME_MINUTES must be positive")

        if self.monitoring.port < 0:
            raise ValueError("METRICS_PORT cannot be negative")


# Create global settings instance
settings = Settings()
settings.validate()
