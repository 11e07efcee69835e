"""Centralised settings for the stashgraph engine.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("STASHGRAPH_WORKSPACE", Path.home() / ".stashgraph")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "stashgraph.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # Graph construction
    # ------------------------------------------------------------------
    graph_default_limit: int = field(
        default_factory=lambda: int(os.environ.get("GRAPH_DEFAULT_LIMIT", "200"))
    )
    temporal_window_hours: float = field(
        default_factory=lambda: float(os.environ.get("TEMPORAL_WINDOW_HOURS", "24"))
    )
    max_depth: int = field(
        default_factory=lambda: int(os.environ.get("GRAPH_MAX_DEPTH", "5"))
    )

    # ------------------------------------------------------------------
    # Layout simulation
    # ------------------------------------------------------------------
    alpha_decay: float = field(
        default_factory=lambda: float(os.environ.get("LAYOUT_ALPHA_DECAY", "0.993"))
    )
    alpha_min: float = field(
        default_factory=lambda: float(os.environ.get("LAYOUT_ALPHA_MIN", "0.001"))
    )
    autofit_threshold: float = field(
        default_factory=lambda: float(os.environ.get("LAYOUT_AUTOFIT_THRESHOLD", "0.7"))
    )

    # ------------------------------------------------------------------
    # Remote graph provider
    # ------------------------------------------------------------------
    provider_url: str = field(
        default_factory=lambda: os.environ.get("STASHGRAPH_PROVIDER_URL", "http://localhost:8000")
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("STASHGRAPH_LOG_LEVEL", "WARNING")
    )

    @property
    def temporal_window_seconds(self) -> int:
        return int(self.temporal_window_hours * 3600)


def configure_logging(level: str | None = None) -> None:
    """Configure the package-wide ``stashgraph`` logger once."""
    logger = logging.getLogger("stashgraph")
    logger.setLevel((level or settings.log_level).upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
        logger.addHandler(handler)


# Module-level singleton; import this everywhere:
#   from stashgraph.config import settings
settings = Settings()
