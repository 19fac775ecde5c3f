# app/config.py
from pathlib import Path
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_AIRLINE_CODES = str(
    Path(__file__).resolve().parent / "iata" / "data" / "iata_to_icao.json"
)


class Settings(BaseSettings):
    # App
    APP_ENV: Literal["dev", "prod", "staging"] = "dev"
    PORT: int = 8080
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    MAX_BODY_BYTES: int = 128 * 1024

    # AeroAPI
    AERO_BASE: str = "https://aeroapi.flightaware.com/aeroapi"
    AERO_KEY: str  # required, no unauthorised calls
    AERO_TIMEOUT_SECONDS: float = 10.0

    # Alerts callback (only needed for /webhook/subscribe)
    ALERTS_HOOK_BASE: str = ""
    ALERTS_TOKEN: str = ""

    # Chat platform inbound webhook, used to relay provider alerts
    CHAT_PLATFORM_WEBHOOK_URL: str = ""
    CHAT_PLATFORM_AUTH: str = ""

    # IATA -> ICAO airline prefix table
    AIRLINE_CODES_PATH: str = DEFAULT_AIRLINE_CODES

    # read .env and ignore any extra keys so this doesn't break again
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

settings = Settings()
