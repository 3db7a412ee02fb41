from gsd_opencode.idempotency.checker import RunManifestStore, check_idempotency
from gsd_opencode.idempotency.models import ArtifactMapping, IdempotencyDecision, RunManifest

__all__ = [
    "ArtifactMapping",
    "IdempotencyDecision",
    "RunManifest",
    "RunManifestStore",
    "check_idempotency",
]
