# farmtrace/core/logging.py
import logging
import sys
import colorlog

# third-party loggers and the level they are capped at
_NOISY_LOGGERS = {
    "pymongo": logging.WARNING,     # heartbeats and topology events at DEBUG
    "motor": logging.WARNING,
    "httpx": logging.WARNING,
}

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


def configure_logging(level=logging.INFO, *, color: bool = True):
    """
    One stdout handler on the root logger; uvicorn follows the same level.
    `color=False` keeps the layout but drops ANSI codes (log shippers, CI).
    """
    handler = colorlog.StreamHandler(sys.stdout)
    handler.setFormatter(
        colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s %(levelname)-8s [%(name)s]%(reset)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors=LOG_COLORS,
            no_color=not color,
        )
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)
    for name, cap in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(max(cap, level))
