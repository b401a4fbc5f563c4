"""
JSON Backup Export / Import

Backups are a single JSON object:

    {"version": ..., "exportDate": ..., "properties": [...], "tenants": [...],
     "receipts": [...], "cashMovements": [...]}

CRITICAL: Import is replace-all. Every record is validated before the
store is touched; a backup with one bad record changes nothing. There is
no merge.

Amounts are written as decimal strings so a round trip is exact.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Type, TypeVar, Union
from uuid import UUID

import structlog
from pydantic import BaseModel, ValidationError

from rental_ledger.audit import AuditLogger, create_correlation_id
from rental_ledger.config import PortabilitySettings
from rental_ledger.errors import LedgerError
from rental_ledger.models.cash import CashMovement
from rental_ledger.models.property import Property
from rental_ledger.models.receipt import Receipt
from rental_ledger.models.reports import ImportStats
from rental_ledger.models.tenant import Tenant
from rental_ledger.services.storage import LedgerStorageInterface

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

REQUIRED_KEYS = ("version", "properties", "tenants")


class PortabilityError(LedgerError):
    """Base exception for backup errors."""
    pass


class BackupReadError(PortabilityError):
    """The backup file could not be read or is not JSON."""

    def __init__(self, path: Union[str, Path], message: str):
        self.path = str(path)
        super().__init__(message)


class BackupValidationError(PortabilityError):
    """The backup content is malformed."""

    def __init__(self, message: str, collection: Optional[str] = None, index: Optional[int] = None):
        self.collection = collection
        self.index = index
        super().__init__(message)


class BackupService:
    """Exports the store to, and replaces it from, JSON backups."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        settings: Optional[PortabilitySettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._settings = settings or PortabilitySettings()
        self._audit_logger = audit_logger

    # -- Export -------------------------------------------------------------

    def export_snapshot(self, now: Optional[datetime] = None) -> dict[str, Any]:
        """Snapshot every collection as a JSON-ready dict."""
        now = now or datetime.utcnow()
        with self._storage.transaction():
            snapshot = {
                "version": self._settings.format_version,
                "exportDate": now.isoformat(),
                "properties": [p.to_record() for p in self._storage.list_properties()],
                "tenants": [t.to_record() for t in self._storage.list_tenants()],
                "receipts": [r.to_record() for r in self._storage.list_receipts()],
                "cashMovements": [m.to_record() for m in self._storage.list_cash_movements()],
            }

        counts = {
            "properties": len(snapshot["properties"]),
            "tenants": len(snapshot["tenants"]),
            "receipts": len(snapshot["receipts"]),
            "cash_movements": len(snapshot["cashMovements"]),
        }
        logger.info("data_exported", **counts)
        if self._audit_logger:
            self._audit_logger.log_data_exported(counts=counts)
        return snapshot

    def backup_filename(self, now: datetime) -> str:
        return f"{self._settings.file_prefix}_{now.date().isoformat()}.json"

    def write_backup(
        self,
        directory: Union[str, Path],
        now: Optional[datetime] = None,
    ) -> Path:
        """
        Write a pretty-printed backup file into ``directory``.

        Returns:
            Path of the written file
        """
        now = now or datetime.utcnow()
        path = Path(directory) / self.backup_filename(now)
        snapshot = self.export_snapshot(now)
        path.write_text(
            json.dumps(snapshot, indent=self._settings.indent, ensure_ascii=False),
            encoding="utf-8",
        )
        return path

    # -- Import -------------------------------------------------------------

    @staticmethod
    def read_backup(path: Union[str, Path]) -> dict[str, Any]:
        """
        Load a backup file.

        Raises:
            BackupReadError: If the file can't be read or decoded
        """
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise BackupReadError(path, f"Cannot read backup {path}: {e}") from e
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise BackupReadError(path, f"Backup {path} is not valid JSON: {e}") from e

    @staticmethod
    def _parse_collection(
        data: dict[str, Any],
        key: str,
        model: Type[ModelT],
    ) -> list[ModelT]:
        raw = data.get(key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise BackupValidationError(f"'{key}' must be a list", collection=key)

        records = []
        seen = set()
        for index, item in enumerate(raw):
            try:
                record = model.model_validate(item)
            except ValidationError as e:
                raise BackupValidationError(
                    f"Invalid record {index} in '{key}': {e}",
                    collection=key,
                    index=index,
                ) from e
            if record.id in seen:
                raise BackupValidationError(
                    f"Duplicate id {record.id} in '{key}'",
                    collection=key,
                    index=index,
                )
            seen.add(record.id)
            records.append(record)
        return records

    def import_snapshot(
        self,
        data: Any,
        correlation_id: Optional[UUID] = None,
    ) -> ImportStats:
        """
        Replace the whole store with a backup's content.

        Raises:
            BackupValidationError: If a required key is missing or any
                                   record is malformed (nothing is changed)
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            if not isinstance(data, dict):
                raise BackupValidationError("Backup must be a JSON object")
            missing = [key for key in REQUIRED_KEYS if data.get(key) in (None, "")]
            if missing:
                raise BackupValidationError(
                    f"Invalid backup: missing {', '.join(missing)}"
                )

            properties = self._parse_collection(data, "properties", Property)
            tenants = self._parse_collection(data, "tenants", Tenant)
            receipts = self._parse_collection(data, "receipts", Receipt)
            movements = self._parse_collection(data, "cashMovements", CashMovement)
        except BackupValidationError as e:
            logger.warning("import_rejected", error=str(e))
            if self._audit_logger:
                self._audit_logger.log_import_rejected(
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        with self._storage.transaction():
            self._storage.replace_all(properties, tenants, receipts, movements)

        stats = ImportStats(
            version=str(data["version"]),
            properties=len(properties),
            tenants=len(tenants),
            receipts=len(receipts),
            cash_movements=len(movements),
        )
        logger.info("data_imported", **stats.model_dump())
        if self._audit_logger:
            self._audit_logger.log_data_imported(
                counts=stats.model_dump(),
                correlation_id=correlation_id,
            )
        return stats

    def restore_backup(
        self,
        path: Union[str, Path],
        correlation_id: Optional[UUID] = None,
    ) -> ImportStats:
        """read_backup followed by import_snapshot."""
        return self.import_snapshot(self.read_backup(path), correlation_id=correlation_id)
