import logging

from studyplanner.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = None):
    """Configure root logging once for the API, CLI and Streamlit app"""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
    )
    # httpx logs every LLM request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
