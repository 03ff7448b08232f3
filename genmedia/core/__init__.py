"""Core domain types and contracts shared by the generation paths."""

from .types import (
    Context,
    GenerationResult,
    GenerationSpec,
    Modality,
    ModelQuota,
    RequestHistoryEntry,
    Tier,
)

__all__ = [
    "Context",
    "GenerationResult",
    "GenerationSpec",
    "Modality",
    "ModelQuota",
    "RequestHistoryEntry",
    "Tier",
]
