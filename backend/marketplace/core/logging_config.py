"""
Logging setup
Single console handler with a uniform format for app and uvicorn logs
"""
import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure the root logger

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    root_logger.addHandler(console_handler)

    # Quieter third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def mask_phone(phone_number: str) -> str:
    """+77011234567 -> +770*****567"""
    if not phone_number or len(phone_number) <= 6:
        return "***"
    return phone_number[:4] + "*" * (len(phone_number) - 7) + phone_number[-3:]
