import logging
from rich.logging import RichHandler
from rich.console import Console
from rich.theme import Theme


custom_theme = Theme({
    "logging.level.debug": "cyan",
    "logging.level.info": "bold #FFFFFF on #61AD00",
    "logging.level.warning": "bold #FFFFFF on #DB6900",
    "logging.level.error": "bold #FFFFFF on #d70000",
    "logging.level.critical": "bold #FFFFFF on red",
    "log.time": "#A3A3A3",
})

console = Console(theme=custom_theme, stderr=True)

# Keep track of loggers to update levels dynamically
_loggers = []


def setup_logger(name: str = "Terra") -> logging.Logger:
    """
    Named logger writing through a shared RichHandler.
    """
    logger = logging.getLogger(name)

    # Avoid adding duplicate handlers
    if not logger.handlers:
        handler = RichHandler(
            console=console,
            rich_tracebacks=True,
            show_time=True,
            omit_repeated_times=False,
            show_path=False,
            markup=False,
            enable_link_path=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)  # Default

    logger.propagate = False

    if logger not in _loggers:
        _loggers.append(logger)

    return logger


def set_log_level(level: int | str):
    """Change the level of every logger created through setup_logger."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    for logger in _loggers:
        logger.setLevel(level)
