"""Find and delete blobs that no site document field references.

Usage:
    classroom-sweep --data-dir ./classroom-data           # report only
    classroom-sweep --data-dir ./classroom-data --apply   # delete orphans

Works on the file backends (``<data-dir>/documents`` and ``<data-dir>/blobs``).
Stop the application first: an upload whose document write has not landed yet
looks orphaned.
"""

from __future__ import annotations

import logging
from functools import partial
from pathlib import Path

import anyio
import click

from classroom.errors import StorageFailure
from classroom.storage.blobs import FileSystemBlobStore
from classroom.storage.documents import JsonFileDocumentStore
from classroom.storage.sweep import sweep_orphaned_blobs


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--data-dir",
    type=click.Path(path_type=Path, file_okay=False),
    envvar="CLASSROOM_DATA_DIR",
    default="classroom-data",
    show_default=True,
    help="Data directory holding documents/ and blobs/.",
)
@click.option("--apply", "apply_", is_flag=True, help="Delete orphans instead of only listing them.")
@click.option("--verbose", "-v", is_flag=True, help="Log every store operation.")
def cli(data_dir: Path, apply_: bool, verbose: bool) -> None:
    """Reconcile the blob store against the site document."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if not (data_dir / "documents").is_dir():
        raise click.ClickException(f"no document store under {data_dir}")
    documents = JsonFileDocumentStore(data_dir / "documents")
    blobs = FileSystemBlobStore(data_dir / "blobs")
    try:
        report = anyio.run(partial(sweep_orphaned_blobs, documents, blobs, dry_run=not apply_))
    except StorageFailure as exc:
        raise click.ClickException(f"sweep failed: {exc.code}")
    for key in report.attempted:
        click.echo(key)
    if not apply_:
        click.echo(f"{len(report.attempted)} orphaned blob(s); rerun with --apply to delete.")
        return
    click.echo(f"Deleted {len(report.released)} of {len(report.attempted)} orphaned blob(s).")
    if report.failed:
        raise click.ClickException(f"{len(report.failed)} blob(s) could not be deleted")


if __name__ == "__main__":  # pragma: no cover - manual entry
    cli()
