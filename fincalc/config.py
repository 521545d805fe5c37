"""
Application configuration using Pydantic Settings.
"""

import os
from functools import lru_cache
from pydantic_settings import BaseSettings

from fincalc.calculations.results import SolverOptions


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "Personal Finance Calculator"
    debug: bool = False
    log_level: str = "INFO"
    app_env: str = "development"

    # Root finder limits (rate, yield and IRR solves)
    solver_max_iterations: int = 100
    solver_value_tolerance: float = 1e-7
    solver_step_tolerance: float = 1e-10

    # Starting IRR guess in percent
    irr_default_guess: float = 10.0

    class Config:
        env_file = get_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def get_solver_options() -> SolverOptions:
    """Solver limits from settings."""
    settings = get_settings()
    return SolverOptions(
        max_iterations=settings.solver_max_iterations,
        value_tolerance=settings.solver_value_tolerance,
        step_tolerance=settings.solver_step_tolerance,
    )
