"""
Command line interface for the aviary pedigree registry.

1) Open (or create) the SQLite registry.
2) Add and update birds through the validating pedigree engine.
3) Query pedigree trees, direct children and parent candidates.
4) Audit the whole registry graph and plot pedigree charts.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
import json

import typer

from config import get_settings
from database import SqliteStore
from errors import GenealogyError
from logging_config import configure_logging
from models import Sex
from plotting import plot_pedigree
from service import PedigreeService

app = typer.Typer(no_args_is_help=True, help="Aviary pedigree registry.")

EXIT_CODES = {"validation": 1, "not_found": 2}

DbOption = typer.Option(None, "--db", help="SQLite registry path (default: AVIARY_DB_PATH)")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level, settings.json_logs)


@contextmanager
def open_service(db: Path | None) -> Iterator[PedigreeService]:
    """Yield a service over the SQLite registry and turn engine errors into exit codes."""
    store = SqliteStore.open(db or get_settings().db_path)
    try:
        yield PedigreeService(store)
    except GenealogyError as exc:
        typer.echo(f"Error: {exc.message}", err=True)
        raise typer.Exit(EXIT_CODES.get(exc.category, 1))
    finally:
        store.close()


def _echo_json(data) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


@app.command("init-db")
def init_db(db: Path | None = DbOption) -> None:
    """Create the registry database if it does not exist."""
    path = db or get_settings().db_path
    SqliteStore.open(path).close()
    typer.echo(f"Registry ready at {path}")


@app.command()
def add(
    name: str = typer.Option(..., help="Bird name"),
    band: str = typer.Option(..., help="Unique band"),
    registration_code: str = typer.Option(..., "--registration-code", help="Registration code"),
    sex: Sex = typer.Option(..., help="MALE, FEMALE or UNDETERMINED"),
    birth_date: str | None = typer.Option(None, "--birth-date", help="YYYY-MM-DD"),
    father: str | None = typer.Option(None, help="Father id"),
    mother: str | None = typer.Option(None, help="Mother id"),
    db: Path | None = DbOption,
) -> None:
    """Register a bird."""
    with open_service(db) as service:
        individual = service.create(
            {
                "name": name,
                "band": band,
                "registration_code": registration_code,
                "sex": sex,
                "birth_date": birth_date,
                "father_id": father,
                "mother_id": mother,
            }
        )
        _echo_json(individual.to_dict())


@app.command()
def update(
    individual_id: str = typer.Argument(..., help="Bird id"),
    name: str | None = typer.Option(None),
    band: str | None = typer.Option(None),
    registration_code: str | None = typer.Option(None, "--registration-code"),
    sex: Sex | None = typer.Option(None),
    birth_date: str | None = typer.Option(None, "--birth-date", help="YYYY-MM-DD"),
    father: str | None = typer.Option(None, help="Father id, or '' to clear"),
    mother: str | None = typer.Option(None, help="Mother id, or '' to clear"),
    db: Path | None = DbOption,
) -> None:
    """Change the supplied fields of a bird."""
    supplied = {
        "name": name,
        "band": band,
        "registration_code": registration_code,
        "sex": sex,
        "birth_date": birth_date,
        "father_id": father,
        "mother_id": mother,
    }
    data = {key: value for key, value in supplied.items() if value is not None}
    with open_service(db) as service:
        _echo_json(service.update(individual_id, data).to_dict())


@app.command()
def delete(individual_id: str = typer.Argument(...), db: Path | None = DbOption) -> None:
    """Delete a bird. Its children keep existing with that parent cleared."""
    with open_service(db) as service:
        service.delete(individual_id)
        typer.echo(f"Deleted {individual_id}")


@app.command()
def show(individual_id: str = typer.Argument(...), db: Path | None = DbOption) -> None:
    """Print one bird as JSON."""
    with open_service(db) as service:
        _echo_json(service.get(individual_id).to_dict())


@app.command()
def tree(
    individual_id: str = typer.Argument(...),
    generations: int | None = typer.Option(None, "--generations", "-g"),
    db: Path | None = DbOption,
) -> None:
    """Print the pedigree tree of a bird as JSON."""
    if generations is None:
        generations = get_settings().default_generations
    with open_service(db) as service:
        _echo_json(service.build_tree(individual_id, generations).to_dict())


@app.command()
def children(individual_id: str = typer.Argument(...), db: Path | None = DbOption) -> None:
    """List the direct children of a bird with their other parent."""
    with open_service(db) as service:
        found = service.find_children(individual_id)
        data = []
        for child in found:
            entry = child.individual.to_dict()
            entry["other_parent"] = (
                vars(child.other_parent).copy() if child.other_parent else None
            )
            data.append(entry)
        _echo_json({"data": data, "meta": {"total": len(data)}})


def _echo_candidates(candidates) -> None:
    for candidate in candidates:
        born = candidate.birth_date.isoformat() if candidate.birth_date else "-"
        typer.echo(
            f"{candidate.id}  {candidate.name:<24} {candidate.band:<12} "
            f"{candidate.sex.value:<13} {born}"
        )


@app.command()
def fathers(db: Path | None = DbOption) -> None:
    """List birds that can be recorded as a father."""
    with open_service(db) as service:
        _echo_candidates(service.available_fathers())


@app.command()
def mothers(db: Path | None = DbOption) -> None:
    """List birds that can be recorded as a mother."""
    with open_service(db) as service:
        _echo_candidates(service.available_mothers())


@app.command()
def audit(
    individual_id: str | None = typer.Argument(None, help="Only check this bird's pedigree"),
    db: Path | None = DbOption,
) -> None:
    """Check the registry for cycles, birth order and parent sex problems."""
    with open_service(db) as service:
        warnings = service.audit(individual_id)
    if warnings:
        typer.echo(f"Found {len(warnings)} validation warnings:")
        for w in warnings[:10]:
            typer.echo(f"  - {w}")
        if len(warnings) > 10:
            typer.echo(f"  ... and {len(warnings) - 10} more")
        raise typer.Exit(1)
    typer.echo("No validation issues found")


@app.command()
def plot(
    individual_id: str = typer.Argument(...),
    output: Path | None = typer.Option(None, "--output", "-o", help="png, svg or pdf file"),
    generations: int | None = typer.Option(None, "--generations", "-g"),
    db: Path | None = DbOption,
) -> None:
    """Draw the pedigree chart of a bird."""
    if generations is None:
        generations = get_settings().default_generations
    with open_service(db) as service:
        pedigree = service.build_tree(individual_id, generations)
    plot_pedigree(pedigree, output)


if __name__ == "__main__":
    app()
