"""Fixtures for end-to-end tests of the ``nexushub`` command.

Registers a test-only ``emit-logs`` command that writes one record per level
on an app logger and on a third-party logger, so verbosity, per-logger
overrides and the flight recorder can be observed from the outside.
"""

import logging

import click
import pytest
from click.testing import CliRunner

from nexushub.entrypoints.cli.main import nexushub

# pylint: disable=redefined-outer-name

APP_LOGGER = "nexushub.service_layer.demo"
VENDOR_LOGGER = "vendor.driver"


@click.command()
def emit_logs():
    """Write one message per level, then a trailing DEBUG line."""
    app = logging.getLogger(APP_LOGGER)
    app.debug("app debug: loading unit of work")
    app.info("app info: create_post applied")
    app.warning("app warning: create_post partial")
    app.error("app error: store unavailable")
    app.critical("app critical: giving up")
    vendor = logging.getLogger(VENDOR_LOGGER)
    vendor.debug("vendor debug: pool checkout")
    vendor.info("vendor info: connected")
    vendor.warning("vendor warning: slow query")
    app.debug("app debug: request finished")


def _unregister(group, name: str) -> None:
    """Drop `name` from the group and from any click-extra sections."""
    group.commands.pop(name, None)
    if hasattr(group, "_default_section"):
        group._default_section.commands.pop(name, None)  # pylint: disable=protected-access
    for section in getattr(group, "_sections", []):
        getattr(section, "commands", {}).pop(name, None)


@pytest.fixture
def with_emit_logs():
    """Attach ``emit-logs`` to the top-level group for one test."""
    nexushub.add_command(emit_logs, name="emit-logs")
    try:
        yield
    finally:
        _unregister(nexushub, "emit-logs")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def fs(runner):
    """Run the test inside a throwaway working directory."""
    with runner.isolated_filesystem():
        yield
