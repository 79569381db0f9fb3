"""Parse ``-L NAME=LEVEL`` options into per-logger levels."""

import logging
import re

import click

DEFAULT_LIB_LEVELS = {
    "sqlalchemy": logging.WARNING,
    "alembic": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


def _split_items(value: str | list[str] | tuple[str, ...]) -> list[str]:
    """Flatten repeated and comma/space separated values into single items."""
    values = value if isinstance(value, (tuple, list)) else [value]
    return [item for v in values for item in re.split(r"[,\s]+", v) if item]


def parse_log_level(
    ctx: click.Context,  # pylint: disable=unused-argument
    param: click.Parameter | None,  # pylint: disable=unused-argument
    value: str | list[str] | tuple[str, ...],
) -> dict[str, int]:
    """Click callback mapping logger names to numeric levels.

    The defaults in `DEFAULT_LIB_LEVELS` apply unless overridden.

    Raises:
        click.BadParameter: If an item is not ``NAME=LEVEL`` or LEVEL is unknown.
    """
    levels = dict(DEFAULT_LIB_LEVELS)
    for item in _split_items(value):
        name, sep, level_name = item.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"Expected NAME=LEVEL, got {item!r}")
        level = logging.getLevelName(level_name.strip().upper())
        if not isinstance(level, int):
            raise click.BadParameter(f"Invalid log level: {level_name}")
        levels[name.strip()] = level
    return levels
