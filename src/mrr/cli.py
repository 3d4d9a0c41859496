# file: src/mrr/cli.py
from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from src.mrr.config import load_config
from src.mrr.io_utils import read_table
from src.mrr.tasks import run_full_pipeline
from src.mrr.validate import validate_mrr_output

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
app = typer.Typer(add_completion=False)
console = Console()


def _print_table(title: str, rows: dict) -> None:
    table = Table(title=title)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")

    for k, v in rows.items():
        table.add_row(str(k), str(v))

    console.print(table)


@app.command()
def run(
    input_path: Optional[str] = typer.Option(None, "--input", help="CSV or Parquet subscription table"),
    overwrite: bool = False,
    validate: bool = True,
):
    """Compute the MRR table and write artifacts."""
    cfg = load_config(input_path=input_path, overwrite=overwrite, validate_output=validate)
    results = run_full_pipeline(cfg)
    _print_table("MRR Pipeline Results", results)


@app.command()
def check(path: str):
    """Validate an existing MRR table; exit code 1 on failure."""
    report = validate_mrr_output(read_table(path))
    _print_table(f"MRR Validation: {'PASS' if report.ok else 'FAIL'}", {"message": report.message, **report.details})
    if not report.ok:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
