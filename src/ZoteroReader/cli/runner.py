"""Command runner for coordinating CLI execution.

Manages logging configuration, service lifecycle and error translation for
every command.
"""

from __future__ import annotations

from typing import Callable, TypeVar

import click

from ZoteroReader.config import AppConfig
from ZoteroReader.core.errors import ReaderError
from ZoteroReader.services import ReaderServices, create_services
from ZoteroReader.utils.log import configure_logging, log

T = TypeVar("T")


class CommandRunner:
    """Run one CLI action with configured logging and wired services."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config

    def run(self, action: str, command: Callable[[ReaderServices], T]) -> T:
        """Execute ``command`` with a fresh service container.

        Args:
            action: The CLI command name, used for the log file path.
            command: Receives the services and performs the action.

        Returns:
            Whatever ``command`` returns.

        Raises:
            click.ClickException: When the action fails with a ReaderError.
        """
        log_path = configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
        )
        if log_path is not None:
            log.debug("Writing %s log to %s", action, log_path)
        services = create_services(self.config)
        try:
            return command(services)
        except ReaderError as e:
            log.debug("%s failed: %s", action, e.message)
            raise click.ClickException(e.message) from e
        finally:
            services.close()
