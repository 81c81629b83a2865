import os
from dotenv import load_dotenv
from fastapi.security import OAuth2PasswordBearer
from typing import Dict, Any, Tuple, Type

# Load environment variables
load_dotenv()

class ConfigError(Exception):
    """Exception raised for missing configuration values"""
    pass

class Settings:
    # Define required environment variables
    REQUIRED_CONFIGS = [
        "DATABASE_URL",
        "DATABASE_NAME",
        "JWT_SECRET_KEY",
    ]

    # Define config with default values and types (None means required with no default)
    # Format: (default_value, type)
    CONFIG_DEFAULTS: Dict[str, Tuple[Any, Type]] = {
        "DATABASE_URL": (None, str),
        "DATABASE_NAME": (None, str),
        "JWT_SECRET_KEY": (None, str),
        "JWT_ALGORITHM": ("HS256", str),
        # Database pool settings
        "DB_MAX_POOL_SIZE": (10, int),
        "DB_MAX_RECONNECT_ATTEMPTS": (5, int),
        "DB_RECONNECT_DELAY": (5, int),  # seconds
        "DB_SERVER_SELECTION_TIMEOUT_MS": (5000, int),
        "DB_CONNECT_TIMEOUT_MS": (5000, int),
        # Chat paging
        "CHAT_PAGE_SIZE": (20, int),
        "MESSAGE_PAGE_SIZE": (50, int),
        "MAX_PAGE_SIZE": (100, int),
        "LOG_LEVEL": ("INFO", str),
    }

    def __init__(self):
        self.values = {}
        self._load_config()

    def _load_config(self):
        # Check for required environment variables
        missing_vars = []
        for var in self.REQUIRED_CONFIGS:
            if not os.getenv(var):
                missing_vars.append(var)

        if missing_vars:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing_vars)}")

        # Load all config values with type conversion
        for key, (default_value, type_) in self.CONFIG_DEFAULTS.items():
            value = os.getenv(key)

            if value is None:
                if default_value is None:
                    raise ConfigError(f"Missing required config value: {key}")
                self.values[key] = default_value
            else:
                try:
                    # Convert string value to expected type
                    if type_ == bool:
                        self.values[key] = value.lower() in ('true', '1', 'yes')
                    else:
                        self.values[key] = type_(value)
                except ValueError as e:
                    raise ConfigError(f"Invalid value for {key}: {str(e)}")

        for key in ("CHAT_PAGE_SIZE", "MESSAGE_PAGE_SIZE", "MAX_PAGE_SIZE"):
            if self.values[key] < 1:
                raise ConfigError(f"Invalid value for {key}: must be at least 1")

    def __getattr__(self, name):
        if name in self.values:
            return self.values[name]
        raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{name}'")

# Initialize settings
try:
    settings = Settings()

    oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")

    # Make settings available for import
    DATABASE_URL = settings.DATABASE_URL
    DATABASE_NAME = settings.DATABASE_NAME
    JWT_SECRET_KEY = settings.JWT_SECRET_KEY
    JWT_ALGORITHM = settings.JWT_ALGORITHM

    # Database pool settings
    DB_MAX_POOL_SIZE = settings.DB_MAX_POOL_SIZE
    DB_MAX_RECONNECT_ATTEMPTS = settings.DB_MAX_RECONNECT_ATTEMPTS
    DB_RECONNECT_DELAY = settings.DB_RECONNECT_DELAY
    DB_SERVER_SELECTION_TIMEOUT_MS = settings.DB_SERVER_SELECTION_TIMEOUT_MS
    DB_CONNECT_TIMEOUT_MS = settings.DB_CONNECT_TIMEOUT_MS

    # Chat paging
    CHAT_PAGE_SIZE = settings.CHAT_PAGE_SIZE
    MESSAGE_PAGE_SIZE = settings.MESSAGE_PAGE_SIZE
    MAX_PAGE_SIZE = settings.MAX_PAGE_SIZE

    LOG_LEVEL = settings.LOG_LEVEL

except ConfigError as e:
    # Print error and exit
    print(f"Configuration Error: {e}")
    import sys
    sys.exit(1)
