"""Pool per-unit VRAM and bandwidth across several identical GPUs."""

import math
from dataclasses import dataclass

from vramfit.engine.constants import MAX_UNIT_COUNT, MULTI_UNIT_EFFICIENCY


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero for positive values."""
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class ScaledResources:
    vram: float
    bandwidth: int | float | None

    def to_dict(self) -> dict:
        return {"vram": self.vram, "bandwidth": self.bandwidth}


def _efficiency(count: int) -> float:
    if count <= 1:
        return 1.0
    return MULTI_UNIT_EFFICIENCY.get(count, MULTI_UNIT_EFFICIENCY[max(MULTI_UNIT_EFFICIENCY)])


def scale_resources(
    vram_per_unit: float,
    bandwidth_per_unit: float | None,
    unit_count: int | None = 1,
) -> ScaledResources:
    """Combine per-GPU VRAM and bandwidth into pooled resources.

    VRAM pools linearly. Bandwidth loses efficiency to cross-device traffic,
    more so with every extra device. Unknown bandwidth stays unknown.
    """
    if unit_count is None or unit_count <= 1:
        return ScaledResources(vram=vram_per_unit, bandwidth=bandwidth_per_unit)

    count = min(unit_count, MAX_UNIT_COUNT)
    vram = vram_per_unit * count
    if bandwidth_per_unit is None:
        return ScaledResources(vram=vram, bandwidth=None)

    bandwidth = round_half_up(bandwidth_per_unit * count * _efficiency(count))
    return ScaledResources(vram=vram, bandwidth=bandwidth)
