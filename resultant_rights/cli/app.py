"""Typer-based CLI wiring."""
from __future__ import annotations

from pathlib import Path
from typing import NoReturn, Optional

import typer

from resultant_rights.core.config import ConfigManager, RightsSettings
from resultant_rights.core.ui import RightsUI
from resultant_rights.rights import OutputMode, ResultantRightsService, ResultProjector, RightsReport
from resultant_rights.store import SQLitePolicyStore
from resultant_rights.utils.errors import RightsError
from resultant_rights.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

app = typer.Typer(
    help="Show which management policy rules grant a requestor rights on a target.",
    add_completion=False,
)


def _output_mode(summary: bool, full: bool) -> OutputMode:
    if summary and full:
        raise typer.BadParameter("--summary and --full cannot be combined")
    if summary:
        return OutputMode.SUMMARY
    if full:
        return OutputMode.FULL
    return OutputMode.RAW


def _load_settings(
    config: Optional[Path],
    server: Optional[str],
    database: Optional[str],
    separator: Optional[str],
    log_level: Optional[str],
) -> RightsSettings:
    settings = ConfigManager(config).load()
    return settings.with_overrides(
        store__server=server,
        store__database=database,
        resolver__separator=separator,
        logging__level=log_level,
    )


def _resolve(settings: RightsSettings, requestor: Optional[str], target: Optional[str]) -> RightsReport:
    store = SQLitePolicyStore(settings.store.database, server=settings.store.server)
    service = ResultantRightsService(
        store,
        separator=settings.resolver.separator,
        current_domain=settings.resolver.domain,
        verify_guids=settings.resolver.verify_guids,
    )
    return service.resolve(
        requestor if requestor is not None else settings.defaults.requestor,
        target if target is not None else settings.defaults.target,
    )


def _fail(ui: RightsUI, kind: str, exc: Exception) -> NoReturn:
    message = " ".join(line.strip() for line in str(exc).splitlines() if line.strip())
    ui.error(f"Error [{kind}]: {message or type(exc).__name__}")
    raise typer.Exit(code=1) from exc


@app.command()
def rights(
    requestor: Optional[str] = typer.Option(
        None, "--requestor", "-r", help="GUID, [domain\\]account or type:attribute:value of the requestor"
    ),
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Identifier of the target object"),
    server: Optional[str] = typer.Option(None, "--server", help="Policy store host"),
    database: Optional[str] = typer.Option(None, "--database", help="Policy store database"),
    separator: Optional[str] = typer.Option(None, "--separator", help="Separator for attribute triplets"),
    summary: bool = typer.Option(False, "--summary", help="One line per rule with its actions"),
    full: bool = typer.Option(False, "--full", help="Table of rule, action and attribute"),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML or TOML configuration file"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging threshold"),
) -> None:
    """Resolve the effective rights of REQUESTOR on TARGET."""

    mode = _output_mode(summary, full)
    ui = RightsUI()
    try:
        settings = _load_settings(config, server, database, separator, log_level)
        configure_logging(level=settings.logging.level, log_dir=settings.logging.log_dir)
        report = _resolve(settings, requestor, target)
        ResultProjector(ui).render(report, mode)
    except RightsError as exc:
        logger.info("resolution failed", extra={"kind": exc.kind, "error": str(exc)})
        _fail(ui, exc.kind, exc)
    except Exception as exc:
        logger.info("unexpected failure", exc_info=True)
        _fail(ui, "Unexpected", exc)

