import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Settings:
    # Database settings
    db_file: str = os.getenv("LIBRARY_DB_FILE", "library.db")
    sqlite_timeout: float = float(os.getenv("SQLITE_TIMEOUT", "5"))

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Library Inventory")
    log_level: str = os.getenv("LOG_LEVEL", "WARNING")

    # CLI output: plain | json | rich
    output_mode: str = os.getenv("LIB_CLI_OUTPUT", "plain")


settings = Settings()
