"""CLI entry point for the audiobook matcher."""

import asyncio
import json
from pathlib import Path

import click
from loguru import logger

from .config import MatcherConfig
from .engine import AudiobookMatcher
from .errors import InvalidInputError

log = logger.bind(stage="cli")


def _find_config_file() -> Path | None:
    """Look for .env next to the package or in cwd."""
    pkg_dir = Path(__file__).resolve().parent
    for candidate in [
        pkg_dir.parent.parent / ".env",  # dev: src/../.env
        Path.cwd() / ".env",
    ]:
        if candidate.is_file():
            return candidate
    return None


async def _run(
    config: MatcherConfig,
    title: str,
    author: str,
    isbn: str | None,
    select: bool,
    asin: str | None,
) -> dict:
    async with AudiobookMatcher.connect(config) as matcher:
        if asin:
            record = await matcher.lookup_asin(asin)
            return record.to_dict() if record else {"has_match": False, "external_id": asin}
        if select:
            return (await matcher.find_candidates_for_selection(title, author)).to_dict()
        return (await matcher.find_best_match(title, author, isbn)).to_dict()


@click.command()
@click.argument("title")
@click.argument("author")
@click.option("--isbn", default=None, help="ISBN of the print edition, if known.")
@click.option(
    "--select",
    is_flag=True,
    help="List every ranked candidate instead of auto-picking one.",
)
@click.option("--asin", default=None, help="Skip searching and look up this identifier.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True),
    default=None,
    help="Path to .env file.",
)
def main(
    title: str,
    author: str,
    isbn: str | None,
    select: bool,
    asin: str | None,
    verbose: bool,
    config_file: str | None,
) -> None:
    """Find the audiobook edition of TITLE by AUTHOR."""
    env_file = Path(config_file) if config_file else _find_config_file()
    config_kwargs: dict[str, str] = {}
    if verbose:
        config_kwargs["log_level"] = "DEBUG"

    config = MatcherConfig(_env_file=env_file, **config_kwargs)  # type: ignore[arg-type]
    config.setup_logging()
    log.debug(f"Loaded env from {env_file}" if env_file else "No .env found")

    try:
        result = asyncio.run(_run(config, title, author, isbn, select, asin))
    except InvalidInputError as e:
        raise click.UsageError(str(e)) from e

    click.echo(json.dumps(result, indent=2, default=str))
