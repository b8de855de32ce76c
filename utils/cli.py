"""Subcommand dispatch for the project's command line tools."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from utils.error_tracker import ErrorTracker
from utils.logger import Logger, LoggerType


@dataclass
class Command:
    """One subcommand: its handler and the hook that declares its arguments."""

    name: str
    handler: Callable[[argparse.Namespace], Any]
    add_arguments: Optional[Callable[[argparse.ArgumentParser], None]] = None
    help: str | None = None


@dataclass
class CommandDispatcher:
    """Parse ``argv`` and hand the namespace to the chosen :class:`Command`."""

    description: str
    commands: Sequence[Command] = field(default_factory=list)

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(description=self.description)
        sub = parser.add_subparsers(dest="command", metavar="COMMAND")
        for cmd in self.commands:
            p = sub.add_parser(cmd.name, help=cmd.help, description=cmd.help)
            if cmd.add_arguments is not None:
                cmd.add_arguments(p)
            p.set_defaults(handler=cmd.handler)
        return parser

    def run(
        self,
        argv: Optional[Sequence[str]] = None,
        *,
        logger: Optional[LoggerType] = None,
        track_exceptions: bool = True,
    ) -> Any:
        """
        Dispatch ``argv`` and return whatever the handler returns.

        With ``track_exceptions`` the global excepthook and SIGINT/SIGTERM
        handlers are installed first so camera cleanups run on failure.
        """

        logger = logger or Logger.get_logger("utils.cli")
        if track_exceptions:
            ErrorTracker.install_excepthook()
            ErrorTracker.install_signal_handlers()

        parser = self.build_parser()
        try:
            ns = parser.parse_args(argv)
        except SystemExit as exc:
            if exc.code:
                logger.error(f"Argument parsing failed (exit {exc.code})")
            raise

        handler = getattr(ns, "handler", None)
        if handler is None:
            parser.print_help()
            return None
        logger.debug(f"Running '{ns.command}'")
        return handler(ns)
