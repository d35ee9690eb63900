from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


class Settings:
    def __init__(self) -> None:
        self.ws_port = int(os.getenv("PORT", os.getenv("WS_PORT", "3000")))
        self.log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
        self.game_duration_seconds = max(1, int(os.getenv("GAME_DURATION_SECONDS", "60")))
        self.game_time_scale = min(
            10.0,
            max(0.0001, float(os.getenv("GAME_TIME_SCALE", "1.0"))),
        )
        self.metered_api_key = os.getenv("METERED_API_KEY", "").strip()
        self.metered_app_name = os.getenv("METERED_APP_NAME", "").strip()
        self.turn_fetch_timeout_seconds = max(
            1,
            int(os.getenv("TURN_FETCH_TIMEOUT_SECONDS", "5")),
        )
        self.cors_allow_origins = [
            origin.strip()
            for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
            if origin.strip()
        ] or ["*"]


settings = Settings()
