from gsd_opencode.backup.manager import BackupManager
from gsd_opencode.backup.models import BackupEntry, BackupManifest, SnapshotInfo

__all__ = ["BackupEntry", "BackupManager", "BackupManifest", "SnapshotInfo"]
