"""Engine configuration and settings management."""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults.

    Values are fixed once a pool starts; the model is frozen so a running
    pool can never observe a change.
    """

    model_config = SettingsConfigDict(
        env_prefix="PCE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        frozen=True,
    )

    worker_count: int = Field(default=1, ge=1, description="Number of worker threads draining the request queue.")
    batch_size: int = Field(default=1, ge=1, description="Requests collected per optimization batch.")
    path_slack: int = Field(
        default=2,
        ge=0,
        description="Extra hops allowed over the shortest candidate path of a pair.",
    )
    admission_floor: float = Field(
        default=0.01,
        gt=0.0,
        le=1.0,
        description="Lower bound on the selection sum of each requested pair; forces a binary admit/reject.",
    )
    queue_capacity: int = Field(default=1024, ge=1)
    solver_backend: str = Field(default="SCIP", description="OR-Tools MIP backend identifier.")
    solver_fallback_backend: str = Field(
        default="CBC",
        description="Backend tried when the primary one is not linked into OR-Tools. Empty disables the fallback.",
    )
    solver_time_limit_seconds: float = Field(default=30.0, ge=0.0)
    serialize_solver: bool = Field(
        default=False,
        description="Guard every solve with one lock shared by all workers.",
    )
    collect_poll_seconds: float = Field(default=0.2, gt=0.0)
    requeue_on_stop: bool = Field(
        default=False,
        description="Put partially collected requests back on the queue when a worker is stopped.",
    )

    @field_validator("solver_backend", "solver_fallback_backend", mode="before")
    @classmethod
    def _normalise_backend(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip().upper()


settings = Settings()
