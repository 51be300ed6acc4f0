import logging
import os
from typing import Optional


def configure_logging(level: Optional[str] = None) -> None:
    """Configure logging defaults for the API and the maintenance script."""
    resolved = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
