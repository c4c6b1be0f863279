import logging
import sys


class Log:
    """Centralized worker logging.

    Keyword context passed to the helpers is appended to the message as
    ``key=value`` pairs, so job-level fields stay greppable in plain stdout logs.
    """

    _logger: logging.Logger = logging.getLogger("statement_worker")

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Configure the logger with the specified level and stdout handler."""
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
            )
            cls._logger.addHandler(handler)

    @classmethod
    def info(cls, message: str, **context: object) -> None:
        cls._logger.info(cls._render(message, context))

    @classmethod
    def error(cls, message: str, **context: object) -> None:
        cls._logger.error(cls._render(message, context))

    @classmethod
    def warning(cls, message: str, **context: object) -> None:
        cls._logger.warning(cls._render(message, context))

    @classmethod
    def debug(cls, message: str, **context: object) -> None:
        cls._logger.debug(cls._render(message, context))

    @staticmethod
    def _render(message: str, context: dict[str, object]) -> str:
        if not context:
            return message
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{message} [{pairs}]"
