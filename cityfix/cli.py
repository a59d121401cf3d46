"""CityFix CLI — browse and report municipal issues from the terminal.

Usage::

    cityfix issues --status open
    cityfix report 51.96 7.62 --category roadwork --severity 5 -d "Pothole"
    cityfix export visible.gpkg --category blockage
    cityfix serve
"""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from cityfix.app import CityFixApp
from cityfix.core.config import load_config
from cityfix.core.exceptions import CityFixError
from cityfix.core.models import CATEGORIES, STATUSES, SubmissionSuccess
from cityfix.core.severity import classify_severity

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_filter_options = [
    click.option(
        "--category",
        "categories",
        multiple=True,
        type=click.Choice(CATEGORIES),
        help="Only show these categories (repeatable).",
    ),
    click.option(
        "--status",
        "statuses",
        multiple=True,
        type=click.Choice(STATUSES),
        help="Only show these statuses (repeatable).",
    ),
]


def filter_options(func):
    for option in reversed(_filter_options):
        func = option(func)
    return func


def _apply_filters(app: CityFixApp, categories, statuses) -> None:
    for dimension, chosen, tags in (
        ("category", categories, CATEGORIES),
        ("status", statuses, STATUSES),
    ):
        if chosen:
            for tag in tags:
                app.filters.toggle(dimension, tag, tag in chosen)


async def _load_visible(config, categories, statuses):
    async with CityFixApp(config) as app:
        await app.load()
        _apply_filters(app, categories, statuses)
        return [issue for issue, _ in app.store.all() if app.filters.is_visible(issue)]


@click.group(invoke_without_command=True)
@click.version_option(package_name="cityfix")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """CityFix — map client for municipal issue reports."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
    )
    ctx.ensure_object(dict)
    ctx.obj.setdefault("config", load_config())
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@filter_options
@click.pass_context
def issues(ctx: click.Context, categories, statuses) -> None:
    """List issues that pass the given filters."""
    try:
        visible = asyncio.run(_load_visible(ctx.obj["config"], categories, statuses))
    except CityFixError as exc:
        click.secho(f"Error: {exc}", fg="red")
        sys.exit(1)

    for issue in visible:
        tier = classify_severity(issue.severity).value
        click.echo(
            f"{issue.id}  {issue.category:<12} {issue.status:<11} "
            f"sev={issue.severity} ({tier})  "
            f"{issue.location.lat:.5f},{issue.location.lon:.5f}  {issue.description}"
        )
    click.echo(f"{len(visible)} issue(s) shown")


@cli.command()
@click.argument("lat", type=float)
@click.argument("lon", type=float)
@click.option(
    "--category",
    type=click.Choice(CATEGORIES),
    default=CATEGORIES[0],
    show_default=True,
)
@click.option(
    "--severity",
    type=click.IntRange(1, 5),
    default=3,
    show_default=True,
)
@click.option("-d", "--description", default="", help="Free-text description.")
@click.pass_context
def report(
    ctx: click.Context, lat: float, lon: float, category: str, severity: int, description: str
) -> None:
    """Submit a new issue at LAT LON."""

    async def _submit():
        async with CityFixApp(ctx.obj["config"]) as app:
            app.workflow.arm()
            app.workflow.pick_location(lat, lon)
            app.workflow.update_draft(
                category=category, severity=severity, description=description
            )
            return await app.workflow.submit()

    result = asyncio.run(_submit())
    if isinstance(result, SubmissionSuccess):
        click.secho(f"{result.message} ({result.issue.id})", fg="green")
    else:
        click.secho(f"Submission failed: {result.message}", fg="red")
        sys.exit(1)


@cli.command()
@click.argument("output", type=click.Path())
@filter_options
@click.pass_context
def export(ctx: click.Context, output: str, categories, statuses) -> None:
    """Save visible issues to OUTPUT (GeoJSON or GeoPackage)."""
    import geopandas as gpd

    try:
        visible = asyncio.run(_load_visible(ctx.obj["config"], categories, statuses))
    except CityFixError as exc:
        click.secho(f"Error: {exc}", fg="red")
        sys.exit(1)

    gdf = gpd.GeoDataFrame(
        {
            "id": [i.id for i in visible],
            "category": [i.category for i in visible],
            "status": [i.status for i in visible],
            "severity": [i.severity for i in visible],
            "descriptio": [i.description for i in visible],
            "timestamp": [i.timestamp for i in visible],
        },
        geometry=[i.point for i in visible],
        crs="EPSG:4326",
    )
    driver = "GeoJSON" if output.lower().endswith((".geojson", ".json")) else "GPKG"
    gdf.to_file(output, driver=driver)
    click.echo(f"Saved {len(gdf)} issue(s) to {output}")


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
def serve(host: str, port: int) -> None:
    """Run the web API."""
    from cityfix.web.server import run

    click.echo(f"Serving CityFix on http://{host}:{port}")
    run(host=host, port=port)


if __name__ == "__main__":
    cli()
