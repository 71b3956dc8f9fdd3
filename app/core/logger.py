import sys
from loguru import logger
import logging

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[env]}</magenta> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[env]} | {name}:{function}:{line} - {message}"

class InterceptHandler(logging.Handler):
    """Routes std-lib logging records (uvicorn, urllib3, requests) into loguru."""

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())

def setup_logging(level: str = "INFO", error_log_path: str = "logs/errors.log", environment: str = "development"):
    logger.remove()
    logger.configure(extra={"env": environment})

    logger.add(sys.stdout, level=level, format=CONSOLE_FORMAT)

    # Errors only, rotated
    if error_log_path:
        logger.add(
            error_log_path,
            level="ERROR",
            rotation="10 MB",
            retention="1 month",
            compression="zip",
            format=FILE_FORMAT
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for noisy in ("uvicorn.access", "urllib3", "requests"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

# Before setup_logging runs, records still need the env key
logger.configure(extra={"env": "-"})

__all__ = ["logger", "setup_logging", "InterceptHandler"]
