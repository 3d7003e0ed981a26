"""Export and import of the local library."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from mediasync import log
from mediasync.core.local_store import LocalStore
from mediasync.exceptions import BackupParseError
from mediasync.models.schemas.sync import EXPORT_VERSION, ExportDocument

__all__ = [
    "export_document",
    "export_json",
    "export_to_file",
    "import_document",
    "import_from_file",
    "parse_export",
]


def export_document(store: LocalStore) -> ExportDocument:
    """Build a full dump of the local media and collections."""
    return ExportDocument(
        media=store.get_all(),
        collections=store.get_collections(),
    )


def export_json(store: LocalStore, indent: int | None = 2) -> str:
    """Serialize a full dump to JSON text."""
    return export_document(store).model_dump_json(indent=indent)


def parse_export(payload: str | bytes | dict[str, Any]) -> ExportDocument:
    """Validate an export payload.

    Accepts both the ``collections`` key and the legacy ``smartCollections`` key.

    Args:
        payload (str | bytes | dict[str, Any]): JSON text or an already decoded
            mapping

    Returns:
        ExportDocument: The validated document

    Raises:
        BackupParseError: If the payload is not valid JSON or does not match the
            export document shape
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise BackupParseError(f"Backup is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise BackupParseError("Backup must be a JSON object")

    try:
        document = ExportDocument.model_validate(payload)
    except ValidationError as e:
        raise BackupParseError(
            f"Backup does not match the export format: {e.error_count()} error(s)"
        ) from e

    for kind, records in (
        ("media", document.media),
        ("collection", document.collections),
    ):
        ids = [record.id for record in records]
        if len(ids) != len(set(ids)):
            raise BackupParseError(f"Backup contains duplicate {kind} ids")

    if document.version > EXPORT_VERSION:
        raise BackupParseError(
            f"Backup version {document.version} is newer than supported "
            f"version {EXPORT_VERSION}"
        )
    return document


def import_document(
    store: LocalStore, payload: str | bytes | dict[str, Any] | ExportDocument
) -> ExportDocument:
    """Replace the local media and collections with a backup.

    The payload is fully validated before anything is written, so an invalid
    backup leaves the store untouched.

    Returns:
        ExportDocument: The imported document
    """
    document = (
        payload if isinstance(payload, ExportDocument) else parse_export(payload)
    )
    store.replace_all(document.media, document.collections)
    log.success(
        f"Imported backup from {document.exported_at.isoformat()} "
        f"$${{media: {len(document.media)}, "
        f"collections: {len(document.collections)}}}$$"
    )
    return document


def export_to_file(store: LocalStore, path: Path) -> Path:
    """Write a full dump to ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(export_json(store), encoding="utf-8")
    log.info(f"Exported library to $$'{path}'$$")
    return path


def import_from_file(store: LocalStore, path: Path) -> ExportDocument:
    """Replace the local library with the backup stored at ``path``."""
    return import_document(store, path.read_bytes())
