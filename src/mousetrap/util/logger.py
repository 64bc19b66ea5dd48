import logging
from logging.handlers import RotatingFileHandler
import sys
from pathlib import Path
from datetime import datetime
from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import ANSI

# -------------------- Configuration --------------------
LOGS_DIR: Path = (Path(__file__).parents[3] / "logs").resolve()
LOGS_DIR.mkdir(parents=True, exist_ok=True)

LOG_FORMAT: str = "[%(asctime)s] [%(levelname)s] [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
DATE_FORMAT: str = "%Y-%m-%d %H-%M-%S"

LOG_COLORS = {
    "DEBUG": "\033[36m",      # Cyan
    "INFO": "\033[32m",       # Green
    "WARNING": "\033[33m",    # Yellow
    "ERROR": "\033[31m",      # Red
    "CRITICAL": "\033[38;5;88m",  # Dark Red (ANSI 256-color)
}
RESET_COLOR = "\033[0m"

# Shared by every logger of the session, resolved on first use
LOG_FILEPATH: Path | None = None

# Log files are rotated once they reach this size
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

# One console and one file handler for the whole session, attached to every
# logger. A rotating handler must be the only writer of its file.
_console_handler: logging.Handler | None = None
_file_handler: logging.Handler | None = None


# -------------------- Formatters --------------------
class ColorFormatter(logging.Formatter):
    """
    Custom log formatter that applies ANSI color codes based on log level.

    This formatter wraps log messages with ANSI color escape sequences to make
    console output more readable. Colors are assigned based on the severity level:
    - DEBUG: Cyan
    - INFO: Green
    - WARNING: Yellow
    - ERROR: Red
    - CRITICAL: Dark Red

    Levels without a color (custom levels) are left untouched.

    Attributes:
        Inherits all attributes from logging.Formatter.
    """

    def format(self, record: logging.LogRecord) -> str:
        color = LOG_COLORS.get(record.levelname, "")
        message = super().format(record)
        return f"{color}{message}{RESET_COLOR}" if color else message


class PromptToolkitHandler(logging.Handler):
    """
    Custom logging handler that integrates with prompt_toolkit.

    This handler uses prompt_toolkit's print_formatted_text instead of standard
    print, so the ANSI color codes render portably and log lines don't garble
    an active prompt on the terminal. Errors while printing are routed to
    ``handleError`` instead of propagating into the caller.

    Args:
        formatter (logging.Formatter | None): Optional formatter to apply to log records.
    """

    def __init__(self, formatter: logging.Formatter | None = None):
        super().__init__()
        if formatter:
            self.setFormatter(formatter)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            print_formatted_text(ANSI(msg))
        except Exception:
            self.handleError(record)


plain_formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def should_use_color() -> bool:
    """
    Determine if the current environment supports colorized terminal output.

    Checks if stderr is attached to a terminal (TTY) to determine if ANSI
    color codes should be used in console output.

    Returns:
        bool: True if the environment supports colored output, False otherwise.
    """
    try:
        return sys.stderr.isatty()
    except Exception:
        return False


color_formatter = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT) if should_use_color() else plain_formatter


# -------------------- Logger Setup --------------------

def get_log_filepath() -> Path:
    """
    Get or create the log file path for the current session.

    This function implements a session-based logging strategy so that the
    shared file handler always writes to one file:
    - On first call, it looks for the most recent log file created today
    - If that file was touched within 60 seconds, it is reused (handles quick restarts)
    - Otherwise, a new log file named after the current timestamp is used
    - All subsequent calls return the same path

    Returns:
        Path: Path to the log file shared by all loggers in this session.

    Note:
        The global LOG_FILEPATH variable caches the path after the first call.
    """
    global LOG_FILEPATH

    if LOG_FILEPATH is None:
        today_prefix = datetime.now().strftime("%Y-%m-%d")
        existing_logs = sorted(LOGS_DIR.glob(f"{today_prefix}*.log"), key=lambda p: p.stat().st_mtime, reverse=True)

        if existing_logs and datetime.now().timestamp() - existing_logs[0].stat().st_mtime < 60:
            LOG_FILEPATH = existing_logs[0]
        else:
            LOG_FILEPATH = LOGS_DIR / (datetime.now().strftime(DATE_FORMAT) + ".log")

    return LOG_FILEPATH


def get_shared_handlers() -> tuple[logging.Handler, logging.Handler]:
    """Return the session's console and rotating file handlers, creating them once.

    Returns
    -------
    tuple[logging.Handler, logging.Handler]
        The console handler (INFO and up) and the file handler (DEBUG and up).
    """
    global _console_handler, _file_handler

    if _console_handler is None:
        _console_handler = PromptToolkitHandler(formatter=color_formatter)
        _console_handler.setLevel(logging.INFO)

    if _file_handler is None:
        _file_handler = RotatingFileHandler(
            get_log_filepath(),
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        _file_handler.setLevel(logging.DEBUG)
        _file_handler.setFormatter(plain_formatter)

    return _console_handler, _file_handler


def setup_logger(logger_name: str) -> logging.Logger:
    """Configure and return a logger with the shared console and rotating file handlers.

    Parameters
    ----------
    logger_name:
        Name of the logger to configure.

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    logger = logging.getLogger(logger_name)

    if logger.handlers:
        return logger

    base_level = logging.DEBUG
    logger.setLevel(base_level)
    logger.propagate = False

    for handler in get_shared_handlers():
        logger.addHandler(handler)

    return logger


def get_logger(logger_name: str) -> logging.Logger:
    """Retrieve a logger configured for Mousetrap, creating it if necessary.

    Parameters
    ----------
    logger_name:
        Name of the logger requested by the caller.

    Returns
    -------
    logging.Logger
        Logger instance ready for use.
    """
    return setup_logger(logger_name)


# -------------------- Exception Handling --------------------
def handle_exception(exception_type, exception_instance, exception_traceback) -> None:
    """
    Global exception hook that logs uncaught exceptions.

    KeyboardInterrupt is handed to the default hook so Ctrl+C still exits normally.

    Args:
        exception_type: Class of the uncaught exception.
        exception_instance: The exception object.
        exception_traceback: Traceback of the exception.
    """
    if issubclass(exception_type, KeyboardInterrupt):
        sys.__excepthook__(exception_type, exception_instance, exception_traceback)
    else:
        logging.error("Uncaught exception", exc_info=(exception_type, exception_instance, exception_traceback))


# -------------------- Suppress Noisy Libraries --------------------
NOISY_LOGGERS = [
    "discord", "discord.gateway", "discord.client", "discord.http",
    "websockets", "aiohttp", "asyncio",
]

for noisy_logger in NOISY_LOGGERS:
    lg = logging.getLogger(noisy_logger)
    lg.setLevel(logging.ERROR)
    lg.propagate = False
    lg.handlers = []


sys.excepthook = handle_exception
