"""Centralized settings for the location simulator."""
from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "LOCATION_SIM_"}

    # Where simulated-position state is persisted between runs
    store_backend: Literal["memory", "file", "redis"] = "file"
    state_file: Path = Path("location_sim_state.json")

    # Redis: empty string means disabled (graceful fallback)
    redis_url: str = ""
    key_prefix: str = "ls"

    # Nominal tick period; step distance is speed * this, not measured time
    tick_interval_s: float = Field(default=1.0, gt=0.0)

    log_level: str = "INFO"


settings = Settings()
