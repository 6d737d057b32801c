from __future__ import annotations

from .models import ReadObservation, ThresholdConfig


def passes_quality_gate(
    obs: ReadObservation,
    column_depth: int,
    config: ThresholdConfig,
) -> bool:
    """Decide whether one read observation is admitted to the column tally.

    Deletion and reference-skip claims have no query position, so only the
    sequence and depth checks apply to them.
    """
    # Secondary alignments can carry an empty SEQ
    if not obs.has_sequence or column_depth < config.depth_floor:
        return False
    if obs.query_position is not None:
        if obs.base_quality is not None and obs.base_quality < config.base_quality_floor:
            return False
        if obs.mapping_quality < config.map_quality_floor:
            return False
    return True
