"""
services/backup_service.py
--------------------------
Creating, listing and restoring database backups.
Backups are plain SQL files kept in BACKUP_DIR; restores never read
outside of it.
"""

import os
from datetime import datetime
from typing import Optional

from config import BACKUP_DIR, DATABASE_URL
from db.backup import dump_database, load_database
from db.connection import ConstraintViolation, Database
from models.constants import LOG_BACKUP_CREATED, LOG_BACKUP_RESTORED
from services.audit_service import AuditService
from services.errors import NotFoundError, ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)


class BackupService:
    """Wraps the dump/restore pipeline with file management and auditing."""

    def __init__(self, db: Database, backup_dir: str = BACKUP_DIR, dsn: str = DATABASE_URL):
        self.db = db
        self.backup_dir = os.path.realpath(backup_dir)
        self.dsn = dsn
        self.audit = AuditService(db)

    def resolve(self, name: str) -> str:
        """
        Map a backup name (or a path inside the backup directory) to an
        absolute file path.

        Raises:
            ValidationError: The path escapes the backup directory or is not a .sql file.
            NotFoundError: No such backup.
        """
        if not name or not name.strip():
            raise ValidationError("Backup name is required")
        candidate = os.path.realpath(os.path.join(self.backup_dir, name.strip()))
        if os.path.commonpath([candidate, self.backup_dir]) != self.backup_dir or candidate == self.backup_dir:
            raise ValidationError("Invalid backup path")
        if not candidate.endswith(".sql"):
            raise ValidationError("Backups are .sql files")
        if not os.path.isfile(candidate):
            raise NotFoundError("Backup")
        return candidate

    def create_backup(self, user_id: Optional[int] = None) -> dict:
        """
        Dump the database into a new timestamped file.

        Returns:
            {'fileName', 'path', 'size', 'method'}
        """
        os.makedirs(self.backup_dir, exist_ok=True)
        file_name = f"backup-{datetime.now().strftime('%Y-%m-%dT%H-%M-%S')}.sql"
        path = os.path.join(self.backup_dir, file_name)

        method = dump_database(self.db, self.dsn, path)
        size = os.path.getsize(path)
        logger.info(f"Backup created: {file_name} ({size} bytes, {method})")
        self.audit.create_log(user_id, LOG_BACKUP_CREATED, "backup", file_name, details={"method": method})
        return {"fileName": file_name, "path": path, "size": size, "method": method}

    def list_backups(self) -> list[dict]:
        """Existing backups, newest first."""
        if not os.path.isdir(self.backup_dir):
            return []
        backups = []
        for entry in os.scandir(self.backup_dir):
            if entry.is_file() and entry.name.endswith(".sql"):
                stat = entry.stat()
                backups.append({
                    "fileName": entry.name,
                    "path": entry.path,
                    "size": stat.st_size,
                    "createdAt": datetime.fromtimestamp(stat.st_mtime),
                })
        backups.sort(key=lambda b: b["createdAt"], reverse=True)
        return backups

    def restore_backup(self, name: str, user_id: Optional[int] = None) -> dict:
        """Replace the database content with a backup from the backup directory."""
        path = self.resolve(name)
        logger.warning(f"Restoring database from {os.path.basename(path)}")
        method = load_database(self.db, self.dsn, path)
        logger.info(f"Restore completed ({method})")
        details = {"method": method}
        try:
            self.audit.create_log(user_id, LOG_BACKUP_RESTORED, "backup", os.path.basename(path), details=details)
        except ConstraintViolation:
            # The restoring account may not exist in the restored data
            self.audit.create_log(None, LOG_BACKUP_RESTORED, "backup", os.path.basename(path),
                                  details={**details, "restoredBy": user_id})
        return {"fileName": os.path.basename(path), "method": method}
