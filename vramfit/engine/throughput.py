"""Decode throughput estimate from memory bandwidth."""

from vramfit.catalog import ModelRecord
from vramfit.engine.constants import INFERENCE_OVERHEAD_GB
from vramfit.engine.resources import round_half_up


def estimate_throughput(model: ModelRecord, bandwidth: float | None) -> int | None:
    """Estimate decode tokens/sec.

    Every generated token reads all weights plus KV cache and activations:
    ``tok/s ~= bandwidth / (weight_gb + overhead)``. Returns None when the
    bandwidth is unknown (e.g. manually entered VRAM); never guesses from VRAM.
    """
    if bandwidth is None:
        return None
    return round_half_up(bandwidth / (model.weight_gb + INFERENCE_OVERHEAD_GB))
