"""
Utility functions for Migrator Deps.
"""

from __future__ import annotations

import logging


def setup_logging(*, verbose: bool = False) -> None:
    """Configure logging for the CLI and the API server."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)
