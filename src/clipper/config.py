"""
Configuration: fixed timing constants and environment-backed settings.
"""

import os
from dataclasses import dataclass

# Timing contract (seconds)
BLOCK_DURATION = 20.0
DISPLAY_OVERLAP = 3.0
TRANSITION_WINDOW = 20.0
TRANSITION_LEAD_IN = 5.0
TAIL_PADDING = 2.0
MIN_SPAN = 1.0

MAX_TOPIC_HINTS = 3
TITLE_WORDS = 6

DEFAULT_EXTENSIONS = (".mp4",)


@dataclass
class Settings:
    """Runtime settings for the decision service and cutter."""

    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.2
    azure_endpoint: str | None = None
    azure_api_version: str = "2024-06-01"
    ffmpeg_path: str = "ffmpeg"

    @property
    def use_azure(self) -> bool:
        return bool(self.azure_endpoint)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (call load_dotenv first)."""
        temperature = os.getenv("OPENAI_TEMPERATURE")
        try:
            temp_value = float(temperature) if temperature else 0.2
        except ValueError:
            temp_value = 0.2
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or os.getenv("AZURE_OPENAI_API_KEY"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            openai_temperature=temp_value,
            azure_endpoint=os.getenv("AZURE_OPENAI_ENDPOINT") or None,
            azure_api_version=os.getenv("AZURE_OPENAI_API_VERSION", "2024-06-01"),
            ffmpeg_path=os.getenv("FFMPEG_PATH", "ffmpeg"),
        )
