"""Configuration management for SheetLens."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _parse_cors_origins() -> list[str]:
    """Parse CORS origins from environment variable."""
    cors_env = os.getenv("CORS_ALLOW_ORIGINS")
    if cors_env:
        return cors_env.split(",")
    return ["*"]


class Settings(BaseModel):
    """Application settings."""

    # Server settings
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = int(os.getenv("PORT", "8000"))
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"

    # CORS settings (comma-separated list of allowed origins, or * for all)
    cors_allow_origins: list[str] = _parse_cors_origins()

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Find/replace behaviour
    find_case_sensitive: bool = os.getenv("FIND_CASE_SENSITIVE", "false").lower() == "true"
    find_match_formulas: bool = os.getenv("FIND_MATCH_FORMULAS", "true").lower() == "true"  # Also match against formula text

    # Status bar aggregates
    aggregate_precision: int = int(os.getenv("AGGREGATE_PRECISION", "3"))  # Decimal places for sum/average
    max_aggregate_cells: int = int(os.getenv("MAX_AGGREGATE_CELLS", "100000"))  # Above this, scan populated cells only

    # Grid limits - writes outside these are rejected
    max_grid_cols: int = int(os.getenv("MAX_GRID_COLS", "702"))  # A..ZZ
    max_grid_rows: int = int(os.getenv("MAX_GRID_ROWS", "100000"))
    max_cell_chars: int = int(os.getenv("MAX_CELL_CHARS", "5000"))


settings = Settings()
