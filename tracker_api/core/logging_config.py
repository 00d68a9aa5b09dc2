import logging

from tracker_api.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT)
    # SQL echo belongs to sqlalchemy's own flag, keep its loggers quiet here.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
