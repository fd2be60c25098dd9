"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides lazy Store initialization and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import click

from fwdctl.errors import FwdError
from fwdctl.output.formatters import OutputSettings, format_result
from fwdctl.services.result import ServiceResult
from fwdctl.services.telemetry import inject_meta, trace_root

if TYPE_CHECKING:
    from fwdctl.config.settings import FwdSettings
    from fwdctl.infrastructure.store import Store


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``.  The store is lazily
    initialized on first use so ``--help`` and ``--version`` never
    trigger database access.
    """

    def __init__(self, settings: FwdSettings) -> None:
        self.settings = settings
        self._store: Store | None = None

        # Configure structured logging
        from fwdctl.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            log_json=settings.log_json,
            workspace_root=settings.workspace_root,
        )

        # Enable telemetry context var when verbose
        if settings.verbose:
            from fwdctl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def store(self) -> Store:
        """The store instance (created lazily on first access)."""
        if self._store is None:
            from fwdctl.infrastructure.store import Store

            self._store = Store(self.settings)
        return self._store

    def run(self, op: str, action: Callable[[], ServiceResult]) -> None:
        """Run *action* under a root span and emit its result.

        A :class:`~fwdctl.errors.FwdError` raised by the services becomes
        a failed ServiceResult carrying the error code.
        """
        with trace_root(op) as span:
            try:
                result = action()
            except FwdError as exc:
                result = ServiceResult.failure(op, exc)
        self.emit(inject_meta(result, span))

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
