from gsd_opencode.ir.models import (
    Agent,
    Approximation,
    Command,
    CommandVariable,
    Config,
    GapCategory,
    Gaps,
    Intermediate,
    Model,
    SourceMetadata,
    UnmappedField,
    VariableType,
)

__all__ = [
    "Agent",
    "Approximation",
    "Command",
    "CommandVariable",
    "Config",
    "GapCategory",
    "Gaps",
    "Intermediate",
    "Model",
    "SourceMetadata",
    "UnmappedField",
    "VariableType",
]
