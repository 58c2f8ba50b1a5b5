"""Degradation policy for the size-reduction loop.

Every knob the reducer uses lives here. Attempt tiers form an ordered table
looked up by attempt index, so the policy can be swapped or tested without
touching the loop itself.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Tuple

DEFAULT_FLUSH_GRANULARITY = 50


@dataclass(frozen=True)
class SaveProfile:
    """Serialization options for one attempt.

    use_object_streams:
        Pack objects (and the cross-reference table) into compressed object
        streams.
    flush_granularity:
        Number of pages copied before the build loop yields to the event loop.
    update_field_appearances:
        Regenerate form-field appearance streams before saving.
    """
    use_object_streams: bool
    flush_granularity: int = DEFAULT_FLUSH_GRANULARITY
    update_field_appearances: bool = True


COMPACT = SaveProfile(use_object_streams=True)
COMPACT_FINE = SaveProfile(use_object_streams=True, flush_granularity=10)
EXPANDED_FINER = SaveProfile(use_object_streams=False, flush_granularity=5)
EXPANDED_FINEST = SaveProfile(
    use_object_streams=False,
    flush_granularity=1,
    update_field_appearances=False,
)


@dataclass(frozen=True)
class AttemptTier:
    """One row of the tier table.

    Applies to every attempt up to and including ``max_attempt``
    (``None`` means no upper bound). The content scale for attempt ``a`` is
    ``max(min_scale, base_scale - scale_decay * a)``.
    """
    max_attempt: Optional[int]
    base_scale: float
    save_profile: SaveProfile
    scale_decay: float = 0.0
    min_scale: float = 0.0

    def covers(self, attempt: int) -> bool:
        return self.max_attempt is None or attempt <= self.max_attempt

    def scale_for(self, attempt: int) -> float:
        return max(self.min_scale, self.base_scale - self.scale_decay * attempt)


DEFAULT_TIERS: Tuple[AttemptTier, ...] = (
    AttemptTier(max_attempt=1, base_scale=1.0, save_profile=COMPACT),
    AttemptTier(max_attempt=3, base_scale=0.95, save_profile=COMPACT),
    AttemptTier(max_attempt=6, base_scale=0.85, save_profile=COMPACT_FINE),
    AttemptTier(max_attempt=9, base_scale=0.75, save_profile=EXPANDED_FINER),
    AttemptTier(
        max_attempt=None,
        base_scale=0.9,
        save_profile=EXPANDED_FINEST,
        scale_decay=0.03,
        min_scale=0.5,
    ),
)


@dataclass(frozen=True)
class ReductionPolicy:
    """Thresholds and tiers driving :class:`PDFSizeReducer`.

    All ``*_after`` values are strict: a stage is active when the attempt
    index is greater than the value.
    """
    max_attempts: int = 15
    tiers: Tuple[AttemptTier, ...] = field(default=DEFAULT_TIERS)

    subset_after: int = 5
    subset_ratio_threshold: float = 0.3
    subset_keep_fraction: float = 0.8

    shrink_after: int = 7
    shrink_step: float = 0.05
    min_dimension_ratio: float = 0.7

    strip_metadata_after: int = 8
    strip_annotations_after: int = 10

    reload_every: int = 3
    placeholder_ratio_threshold: float = 0.1

    def tier_for(self, attempt: int) -> AttemptTier:
        if attempt < 1:
            raise ValueError(f"Attempt index must be >= 1, got {attempt}")
        for tier in self.tiers:
            if tier.covers(attempt):
                return tier
        raise ValueError(f"No tier covers attempt {attempt}")

    def scale_for(self, attempt: int) -> float:
        """Uniform content scale; the first attempt never scales."""
        if attempt <= 1:
            return 1.0
        return self.tier_for(attempt).scale_for(attempt)

    def save_profile_for(self, attempt: int) -> SaveProfile:
        return self.tier_for(attempt).save_profile

    def pages_to_keep(self, attempt: int, ratio: float, page_count: int) -> int:
        if ratio < self.subset_ratio_threshold and attempt > self.subset_after:
            return max(1, math.ceil(page_count * self.subset_keep_fraction))
        return page_count

    def dimension_factor(self, attempt: int) -> float:
        """Multiplier applied to page width/height (1.0 = untouched)."""
        if attempt <= self.shrink_after:
            return 1.0
        factor = 1 - (attempt - self.shrink_after) * self.shrink_step
        return max(factor, self.min_dimension_ratio)

    def strips_metadata(self, attempt: int) -> bool:
        return attempt > self.strip_metadata_after

    def strips_annotations(self, attempt: int) -> bool:
        return attempt > self.strip_annotations_after

    def is_checkpoint(self, attempt: int) -> bool:
        return attempt % self.reload_every == 0 and attempt < self.max_attempts

    def wants_placeholder(self, ratio: float) -> bool:
        return ratio < self.placeholder_ratio_threshold


DEFAULT_POLICY = ReductionPolicy()
