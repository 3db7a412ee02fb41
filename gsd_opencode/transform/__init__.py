from gsd_opencode.transform.models import OpenCodeConfig, TransformIssue, TransformResult
from gsd_opencode.transform.transformer import (
    Transformer,
    normalize_command_name,
    transform_ir,
)

__all__ = [
    "OpenCodeConfig",
    "TransformIssue",
    "TransformResult",
    "Transformer",
    "normalize_command_name",
    "transform_ir",
]
