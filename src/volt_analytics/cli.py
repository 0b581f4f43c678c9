"""CLI entry point for volt-analytics."""

from __future__ import annotations

import json
from pathlib import Path

import click

from .core.errors import ConfigError, TradeValidationError

SECTION_CHOICES = ["all", "metrics", "excursions", "behavior", "execution"]


def _load_trades(path: str) -> tuple[list, list[tuple[str, str]]]:
    """Parse a JSON array of trade objects; unparsable records are skipped."""
    from .core.models import Trade

    try:
        raw = json.loads(Path(path).read_text())
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"{path} is not valid JSON: {exc}") from exc
    if isinstance(raw, dict):
        raw = raw.get("trades", [])
    if not isinstance(raw, list):
        raise click.ClickException("Expected a JSON array of trades or an object with a 'trades' key")

    trades = []
    skipped: list[tuple[str, str]] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            skipped.append((f"#{i}", "record is not an object"))
            continue
        try:
            trades.append(Trade.from_dict(item))
        except TradeValidationError as exc:
            skipped.append((exc.trade_id, exc.reason))
    return trades, skipped


@click.group()
def main() -> None:
    """Volt trading-performance analytics."""


@main.command()
@click.argument("trades_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", default=None, help="Config file path (TOML)")
@click.option("--section", type=click.Choice(SECTION_CHOICES), default="all", help="Report section to print")
@click.option("--no-series", is_flag=True, help="Omit per-trade running P&L series")
@click.option("--log-level", default=None, help="Log level override (DEBUG, INFO, ...)")
@click.option("--log-format", type=click.Choice(["json", "console"]), default=None, help="Log output format")
def analyze(
    trades_file: str,
    config: str | None,
    section: str,
    no_series: bool,
    log_level: str | None,
    log_format: str | None,
) -> None:
    """Analyze a JSON trade file and print the report as JSON."""
    import logging

    from .core.config import load_settings
    from .engine import SECTIONS, analyze as run_analysis
    from .observability.logger import setup_logging

    try:
        settings = load_settings(config_path=config)
    except ConfigError as exc:
        raise click.ClickException(str(exc))

    setup_logging(
        level=log_level or settings.observability.log_level,
        format=log_format or settings.observability.log_format,
    )
    log = logging.getLogger(__name__)

    trades, skipped = _load_trades(trades_file)
    for trade_id, reason in skipped:
        log.warning("Skipping unparsable trade %s: %s", trade_id, reason)

    report = run_analysis(trades, settings)
    sections = SECTIONS if section == "all" else (section,)
    payload = report.to_dict(sections=sections, include_series=not no_series)
    payload["rejected"].extend({"trade_id": tid, "reason": reason} for tid, reason in skipped)
    click.echo(json.dumps(payload, indent=2, default=str))


@main.command()
@click.argument("trades_file", type=click.Path(exists=True, dir_okay=False))
def validate(trades_file: str) -> None:
    """List trades that would be excluded from analysis."""
    from .core.models import partition_trades

    trades, skipped = _load_trades(trades_file)
    _, rejected = partition_trades(trades)
    problems = skipped + [(getattr(r.trade, "trade_id", "?"), r.reason) for r in rejected]

    click.echo(f"{len(trades) - len(rejected)} valid, {len(problems)} rejected")
    for trade_id, reason in problems:
        click.echo(f"  {trade_id}: {reason}")
    if problems:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
