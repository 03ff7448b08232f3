from __future__ import annotations

from .constants import (
    GEMINI_2_5_FLASH_IMAGE,
    GEMINI_3_FLASH,
    GEMINI_3_PRO,
    GEMINI_3_PRO_IMAGE,
    SAFETY_FACTOR,
    VEO_2,
    VEO_3_1,
    VEO_3_1_FAST,
)
from .core.types import Modality, ModelQuota, Tier
from .errors import SpecValidationError

# Provider-documented limits before scaling: (model, rpm, rpd, tpm, durations)
_CATALOG: dict[Modality, dict[Tier, tuple[str, int, int, int | None, tuple[int, ...]]]] = {
    Modality.TEXT: {
        Tier.FAST: (GEMINI_3_FLASH, 1000, 10_000, 1_000_000, ()),
        Tier.QUALITY: (GEMINI_3_PRO, 25, 250, 1_000_000, ()),
    },
    Modality.IMAGE: {
        Tier.FAST: (GEMINI_2_5_FLASH_IMAGE, 500, 2_000, 500_000, ()),
        Tier.QUALITY: (GEMINI_3_PRO_IMAGE, 20, 250, 100_000, ()),
    },
    Modality.VIDEO: {
        Tier.FAST: (VEO_2, 2, 50, None, (5, 6, 7, 8)),
        Tier.QUALITY: (VEO_3_1_FAST, 5, 10, None, (4, 6, 8)),
        Tier.ULTRA: (VEO_3_1, 2, 10, None, (4, 6, 8)),
    },
}


def _scale(limit: int, factor: float) -> int:
    return max(int(limit * factor), 1)


def tiers_for(modality: Modality) -> tuple[Tier, ...]:
    return tuple(_CATALOG[modality])


def lookup(modality: Modality, tier: Tier, *, safety_factor: float = SAFETY_FACTOR) -> ModelQuota:
    """Return the backend model and scaled quota ceilings for *modality* at *tier*."""
    try:
        model, rpm, rpd, tpm, durations = _CATALOG[modality][tier]
    except KeyError as exc:
        allowed = ", ".join(t.value for t in tiers_for(modality))
        raise SpecValidationError(
            f"mode '{tier.value}' is not available for {modality.value} generation (expected one of: {allowed})"
        ) from exc
    return ModelQuota(
        model=model,
        rpm=_scale(rpm, safety_factor),
        rpd=_scale(rpd, safety_factor),
        tpm=_scale(tpm, safety_factor) if tpm is not None else None,
        durations=durations,
    )


def text_model(tier: Tier, *, safety_factor: float = SAFETY_FACTOR) -> ModelQuota:
    return lookup(Modality.TEXT, tier, safety_factor=safety_factor)


def image_model(tier: Tier, *, safety_factor: float = SAFETY_FACTOR) -> ModelQuota:
    return lookup(Modality.IMAGE, tier, safety_factor=safety_factor)


def video_model(tier: Tier, *, safety_factor: float = SAFETY_FACTOR) -> ModelQuota:
    return lookup(Modality.VIDEO, tier, safety_factor=safety_factor)
