"""
Command-line interface for syllabus-sync.

Usage:
    syllabus-sync parse syllabus.txt --year 2025   # Print events as JSON
    syllabus-sync serve                            # Run the HTTP API
"""

import asyncio
import json
import sys
from datetime import datetime

import click

from syllabus_sync.config.settings import get_settings
from syllabus_sync.observability.logging import setup_logging


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """Syllabus Sync - Turn course syllabi into calendar events."""
    setup_logging("DEBUG" if debug else None, stream=sys.stderr)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--course-code", default=None, help="Course code (detected when omitted)")
@click.option("--year", default=None, type=int, help="Year for dates written without one")
@click.option(
    "--semester",
    type=click.Choice(["fall", "spring", "summer"], case_sensitive=False),
    default=None,
    help="Use the default term window for this semester (requires --year)",
)
@click.option("--term-start", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--term-end", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--timezone", default=None, help="Timezone label passed to the model")
@click.option("--no-fallback", is_flag=True, help="Never call the language model")
@click.option("--diagnostics/--no-diagnostics", default=True, help="Include diagnostics")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write JSON to this file instead of stdout",
)
def parse(
    file: str,
    course_code: str | None,
    year: int | None,
    semester: str | None,
    term_start: datetime | None,
    term_end: datetime | None,
    timezone: str | None,
    no_fallback: bool,
    diagnostics: bool,
    output: str | None,
) -> None:
    """Parse a syllabus text file and print the events as JSON."""
    from syllabus_sync.services.parser import (
        CourseCodeError,
        ParseRequest,
        SyllabusParseService,
    )
    from syllabus_sync.validation.validator import create_term_window

    if semester:
        if year is None:
            raise click.UsageError("--semester requires --year")
        window_start, window_end = create_term_window(year, semester)
        term_start = term_start or window_start
        term_end = term_end or window_end

    with open(file, encoding="utf-8") as f:
        text = f.read()

    async def run():
        service = SyllabusParseService()
        try:
            return await service.parse(
                ParseRequest(
                    text=text,
                    course_code=course_code,
                    default_year=year,
                    term_start=term_start,
                    term_end=term_end,
                    timezone=timezone,
                    client_id="cli",
                    allow_fallback=not no_fallback,
                )
            )
        finally:
            await service.close()

    try:
        result = asyncio.run(run())
    except CourseCodeError as e:
        raise click.ClickException(f"{e}. Pass --course-code explicitly.") from e

    payload = result.to_dict()
    if not diagnostics:
        payload.pop("diagnostics")
    rendered = json.dumps(payload, indent=2)

    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(rendered + "\n")
        click.echo(f"Wrote {len(result.events)} events to {output}", err=True)
    else:
        click.echo(rendered)


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the syllabus parsing API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    click.echo(f"Starting API server on {host}:{port}")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        "syllabus_sync.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
