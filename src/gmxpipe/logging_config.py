"""Centralized logging configuration for gmxpipe."""
import logging
from pathlib import Path
import sys

FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILENAME = "gmxpipe.log"

class LogFilter(logging.Filter):
    """Filter out overly verbose plotting logs."""
    def filter(self, record):
        if record.name.startswith("matplotlib") and record.levelno < logging.WARNING:
            return False
        return True

def configure_logging(log_dir: Path = Path("runlogs"), verbose: bool = False) -> Path:
    """Set up logging with file and console handlers.

    Returns the path of the main log file.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILENAME

    # Main handler - writes to file
    main_handler = logging.FileHandler(filename=log_path, mode="a")
    main_handler.setFormatter(logging.Formatter(FORMAT, DATE_FORMAT))
    main_handler.addFilter(LogFilter())

    # Console handler - only warnings+ unless verbose
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter(FORMAT, DATE_FORMAT))

    # Configure root logger
    logging.basicConfig(
        level=logging.INFO,
        handlers=[main_handler, console_handler],
        force=True
    )

    # Special cases
    logging.getLogger("matplotlib").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)
    return log_path
