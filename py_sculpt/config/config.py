from pathlib import Path
from typing import Literal, Optional

from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings

import os

# Explicitly load .env for local/dev environments only if values are missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    # Brush Configuration
    brush_directory: Optional[str] = Field(default=None, description="Directory of custom brush images")
    brush_preview_size: Literal[32, 48, 64] = Field(default=48, description="Side length of brush preview masks")
    random_seed: str = Field(default="default", description="Seed for stroke randomization")

    # Terrain Configuration
    max_grid_size: int = Field(default=4097, description="Max allowed heightmap width or height")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "PY_SCULPT_"
        extra = "ignore"


# Instantiate singleton settings object
settings = Settings()
