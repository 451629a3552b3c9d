"""Root logger setup shared by the API and the CLI scripts."""

import logging

from timetrack.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # SQL echo is noisy at INFO; keep it opt-in
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
