import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

# Global variables to track logging state
_is_logging_configured = False
_current_log_file: Optional[Path] = None


def setup_logging(
    log_dir: Union[str, Path] = "logs", console_level: int = logging.INFO
) -> logging.Logger:
    """Configure logging for all modules"""
    global _is_logging_configured, _current_log_file

    # If logging is already configured, return the existing logger
    if _is_logging_configured:
        return logging.getLogger()

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    _current_log_file = log_dir / f"evm_freeze_{timestamp}.log"

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = logging.FileHandler(_current_log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # Set higher log level for noisy third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.INFO)

    _is_logging_configured = True
    return root_logger


def get_current_log_file() -> Optional[Path]:
    """Get the path to the current log file"""
    return _current_log_file
