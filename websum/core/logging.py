"""
Purpose:
- One place to configure stdlib logging for the API process.
- Modules log through logging.getLogger(__name__); this only sets level + format.
"""

import logging

_configured = False


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging once; later calls are no-ops."""
    global _configured
    if _configured:
        return

    logging.basicConfig(
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )
    # httpx logs every request at INFO; keep it quiet unless debugging
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _configured = True
