import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Settings:
    # Storage settings
    data_file: str = os.getenv("LIBRARY_DATA_FILE", "library_data.bin")
    export_file: str = os.getenv("LIBRARY_EXPORT_FILE", "books.csv")

    # CLI settings
    output_mode: str = os.getenv("LIB_CLI_OUTPUT", "plain")

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Library Management System")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")
    log_level: str = os.getenv("LOG_LEVEL", "WARNING")


settings = Settings()
