from .logger import format_error, init_logger

__all__ = ["format_error", "init_logger"]
