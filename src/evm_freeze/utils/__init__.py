from .logging_setup import get_current_log_file, setup_logging

__all__ = ["setup_logging", "get_current_log_file"]
