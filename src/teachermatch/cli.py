"""Typer CLI entrypoint for visa checks and candidate matching."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional

import typer
from pydantic import ValidationError

from .config import load_yaml
from .container import create_container
from .logging import configure_logging
from .schemas import CandidateProfile
from .schemas.config import load_config

app = typer.Typer(help="Teacher visa eligibility and job matching CLI.")


def _load_settings(config: Optional[Path]) -> dict[str, Any]:
    if not config:
        return {}
    try:
        return load_config(load_yaml(config)).to_settings()
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_name="config") from exc


@app.command()
def countries(
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
) -> None:
    """List supported destination countries."""
    container = create_container(settings=_load_settings(config))
    checker = container.visa_checker()
    for code in checker.supported_countries:
        requirement = checker.rules[code]
        typer.echo(f"{code}\t{requirement.name}\t{requirement.visa_type}")


@app.command()
def visa(
    candidate: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Candidate profile JSON path."),
    country: Optional[List[str]] = typer.Option(None, help="Country code or name; repeat for several. Defaults to all."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("WARNING", help="Log level for structured logging."),
) -> None:
    """Print the visa eligibility report for one candidate."""
    settings = _load_settings(config)
    configure_logging(log_level)

    try:
        profile = CandidateProfile.model_validate_json(candidate.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise typer.BadParameter(str(exc), param_name="candidate") from exc

    container = create_container(settings=settings)
    report = container.visa_report().build(profile, list(country) if country else None)
    typer.echo(json.dumps(report, ensure_ascii=False, indent=2))


@app.command()
def match(
    candidates: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Candidate matches JSONL path."),
    job: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Job posting JSON path."),
    output: Path = typer.Option(
        ...,
        exists=False,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Output JSON path.",
    ),
    contacts: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="Contact history JSONL path."),
    as_of: Optional[str] = typer.Option(None, help="Reference date (ISO) for the recontact window and for ages derived from birth dates."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
) -> None:
    """Filter, deduplicate and rank candidates for a job posting."""
    settings = _load_settings(config)
    configure_logging(log_level)

    container = create_container(settings=settings)
    pipeline = container.matching_pipeline()

    payload = pipeline.run(
        candidates_path=candidates,
        job_path=job,
        output_path=output,
        contacts_path=contacts,
        as_of=as_of,
    )
    typer.echo(
        f"Matched {len(payload['results'])} of {payload['metadata']['candidate_count']} "
        f"candidates. Results saved to {output}."
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
