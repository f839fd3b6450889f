import logging
import sys

# Libraries that log every page or request at DEBUG/INFO.
_NOISY_LOGGERS = ("pdfminer", "httpx", "httpcore", "openai", "transformers")


class Log:
    """Process-wide moderation logger. Messages carry the worker thread name."""

    _logger: logging.Logger = logging.getLogger("moderation")

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Set the level, attach a stdout handler once, and quiet chatty dependencies."""
        level = log_level.upper()
        cls._logger.setLevel(level)
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] [%(threadName)s] %(message)s")
            )
            cls._logger.addHandler(handler)
        dependency_level = max(logging.WARNING, cls._logger.getEffectiveLevel())
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(dependency_level)

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        """Log an info message."""
        cls._logger.info(message, extra=kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        """Log an error message."""
        cls._logger.error(message, extra=kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        """Log a warning message."""
        cls._logger.warning(message, extra=kwargs)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        """Log a debug message."""
        cls._logger.debug(message, extra=kwargs)

    @classmethod
    def exception(cls, message: str, **kwargs: object) -> None:
        """Log at ERROR with the active exception's traceback."""
        cls._logger.exception(message, extra=kwargs)
