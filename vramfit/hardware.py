"""Turn a GPU catalog record (or a manual VRAM figure) into an engine budget."""

import logging

from vramfit.catalog import GpuRecord
from vramfit.engine.resources import ScaledResources, scale_resources
from vramfit.errors import UnknownGpuError

logger = logging.getLogger(__name__)


def find_gpu(gpus: list[GpuRecord], gpu_id: str) -> GpuRecord:
    """Look up a GPU by id. Raises ``UnknownGpuError`` if it is not in the catalog."""
    for gpu in gpus:
        if gpu.id == gpu_id:
            return gpu
    raise UnknownGpuError(gpu_id)


def resolve_gpu(gpu: GpuRecord, vram_gb: float | None = None) -> tuple[float, float]:
    """Return ``(vram_gb, bandwidth_gbps)`` for one unit of *gpu*.

    Unified-memory chips pick the option matching *vram_gb*, or their smallest
    configuration when none is given. Discrete GPUs ignore *vram_gb*.

    Raises ``ValueError`` if *vram_gb* is not one of the chip's options.
    """
    if not gpu.is_unified:
        return gpu.vram_gb, gpu.bandwidth_gbps

    if vram_gb is None:
        option = gpu.vram_options[0]
        return option.vram_gb, option.bandwidth_gbps

    for option in gpu.vram_options:
        if option.vram_gb == vram_gb:
            return option.vram_gb, option.bandwidth_gbps

    available = [opt.vram_gb for opt in gpu.vram_options]
    raise ValueError(f"{gpu.name} has no {vram_gb} GB option (available: {available})")


def manual_resources(vram_gb: float, bandwidth_gbps: float | None = None) -> ScaledResources:
    """Budget for manually entered VRAM. Bandwidth stays unknown unless given."""
    return ScaledResources(vram=vram_gb, bandwidth=bandwidth_gbps)


def resolve_budget(
    gpu: GpuRecord,
    vram_gb: float | None = None,
    gpu_count: int | None = 1,
) -> ScaledResources:
    """Resolve one unit of *gpu* and pool it across *gpu_count* units."""
    unit_vram, unit_bandwidth = resolve_gpu(gpu, vram_gb)
    budget = scale_resources(unit_vram, unit_bandwidth, gpu_count)
    logger.debug(
        "%s x%s -> %.1f GB VRAM, %s GB/s",
        gpu.name,
        gpu_count or 1,
        budget.vram,
        budget.bandwidth,
    )
    return budget
