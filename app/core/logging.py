"""
Logging setup.

Modules log through `logging.getLogger(__name__)`; this only wires the root
handler once, at import time of `app.main`. Output goes to stdout so the
process manager (gunicorn / Railway / Render) captures it.
"""
import logging
import sys

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    root = logging.getLogger()
    if root.handlers:
        root.setLevel((level or settings.LOG_LEVEL).upper())
        return
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
        stream=sys.stdout,
    )
