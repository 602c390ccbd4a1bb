"""Logging setup for the SME codec.

Components log through loggers below ``sme``: ``sme.schema``,
``sme.serialization``, ``sme.config`` and ``sme.cli``. Nothing is printed
until :func:`configure_logging` attaches a handler, so applications that
embed the codec keep control of their own logging.

Example:
    >>> from sme.logging import configure_logging, get_logger
    >>> configure_logging("debug")
    >>> get_logger("schema").debug("Parsing %s", "example.sme")
"""

import logging
from typing import Optional, Union

from sme.exceptions import ConfigurationException

SME_ROOT_LOGGER = "sme"
DEFAULT_FORMAT = "%(levelname)s %(name)s: %(message)s"


def get_logger(component: str = "") -> logging.Logger:
    """Get the logger of an SME component, or the root ``sme`` logger."""
    if component:
        return logging.getLogger(f"{SME_ROOT_LOGGER}.{component}")
    return logging.getLogger(SME_ROOT_LOGGER)


def resolve_level(level: Union[int, str]) -> int:
    """Turn a level name such as ``"debug"`` into its numeric value.

    Raises:
        ConfigurationException: If the name is not a logging level.
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ConfigurationException(f"Unknown log level: {level!r}")
    return value


def configure_logging(
    level: Union[int, str] = logging.WARNING,
    format_string: str = DEFAULT_FORMAT,
    handler: Optional[logging.Handler] = None,
) -> logging.Logger:
    """Attach a handler to the ``sme`` logger and set its level.

    Calling it again only changes the level; the first handler is kept.

    Args:
        level: Numeric level or level name.
        format_string: Format for the attached handler.
        handler: Handler to attach; a stderr StreamHandler by default.

    Returns:
        The root ``sme`` logger.
    """
    level = resolve_level(level)
    logger = get_logger()
    logger.setLevel(level)
    if not logger.handlers:
        handler = handler if handler is not None else logging.StreamHandler()
        handler.setFormatter(logging.Formatter(format_string))
        logger.addHandler(handler)
    for attached in logger.handlers:
        attached.setLevel(level)
    return logger
