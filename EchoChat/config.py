"""
Configuration module for EchoChat application.
Stores all application settings.
"""

import os
from typing import Any, Dict, Optional


class Config:
    """Application configuration class."""

    # Server Configuration
    DEFAULT_HOST = "localhost"
    DEFAULT_PORT = 5555
    LISTEN_HOST = "0.0.0.0"

    # Largest valid TCP port
    MAX_PORT = 65535

    # Logging environment (development, production, testing)
    LOG_ENV = os.environ.get("ECHOCHAT_ENV", "development")

    @classmethod
    def get_config(cls) -> Dict[str, Any]:
        """Get all configuration values as a dictionary."""
        return {
            "DEFAULT_HOST": cls.DEFAULT_HOST,
            "DEFAULT_PORT": cls.DEFAULT_PORT,
            "LISTEN_HOST": cls.LISTEN_HOST,
            "MAX_PORT": cls.MAX_PORT,
            "LOG_ENV": cls.LOG_ENV,
        }


def parse_port(value: Optional[str], default: Optional[int] = None) -> Optional[int]:
    """
    Parse a port number.

    Args:
        value: Text to parse
        default: Returned when value is missing or not a valid port

    Returns:
        The port, or ``default`` if the text is not an integer in 0..65535
    """
    if value is None:
        return default
    try:
        port = int(value.strip())
    except ValueError:
        return default
    if not 0 <= port <= Config.MAX_PORT:
        return default
    return port


# Create config instance
config = Config()
