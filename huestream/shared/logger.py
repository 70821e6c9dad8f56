import sys

from loguru import logger


def format_error(ex: BaseException) -> str:
    from traceback import TracebackException

    return "".join(TracebackException.from_exception(ex).format())


def init_logger(debug: bool | None = None) -> None:
    """Replace loguru's default sink with the huestream stderr format.

    When `debug` is None the HUESTREAM_DEBUG setting decides.
    """
    if debug is None:
        from ..config import config

        debug = str(config.get("HUESTREAM_DEBUG", "false")).strip().lower() == "true"

    logger.remove()

    if debug:
        logger_level = "DEBUG"
        logger_format = (
            "<green>{time:MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )
    else:
        logger_level = "INFO"
        logger_format = (
            "{time:MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{name}:{function}:{line} | "
            "{message}"
        )
    logger.add(sys.stderr, level=logger_level, format=logger_format)
