"""Discrete GPU records sourced from dbgpu (TechPowerUp database).

dbgpu ships its database with the package, so building records needs no
network access. Unified-memory chips (Apple Silicon) have per-configuration
bandwidth that dbgpu does not model; those stay hand-curated in gpus.json.
"""

import logging

from dbgpu import GPUDatabase

from vramfit.catalog import GpuRecord

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Our GPU id → dbgpu specification key (slug)
# ---------------------------------------------------------------------------
GPU_ID_TO_DBGPU_KEY: dict[str, str] = {
    "rtx-3060-12gb": "geforce-rtx-3060-12-gb",
    "rtx-3090": "geforce-rtx-3090",
    "rtx-4060-ti-16gb": "geforce-rtx-4060-ti-16-gb",
    "rtx-4070": "geforce-rtx-4070",
    "rtx-4080": "geforce-rtx-4080",
    "rtx-4090": "geforce-rtx-4090",
    "rtx-5090": "geforce-rtx-5090",
    "rx-7900-xtx": "radeon-rx-7900-xtx",
    "arc-a770": "arc-a770",
}

# dbgpu manufacturer strings → catalog manufacturer
_MANUFACTURERS: dict[str, str] = {
    "NVIDIA": "NVIDIA",
    "AMD": "AMD",
    "ATI": "AMD",
    "Intel": "Intel",
}


def gpu_record_from_dbgpu(
    gpu_id: str,
    dbgpu_key: str,
    db: GPUDatabase | None = None,
) -> GpuRecord:
    """Build a discrete ``GpuRecord`` from one dbgpu specification.

    Raises KeyError if the key is not in dbgpu, the manufacturer is not one
    the catalog supports, or the entry lacks memory size or bandwidth; no
    silent fallbacks.
    """
    if db is None:
        db = GPUDatabase.default()
    specs_map = db.specifications

    if dbgpu_key not in specs_map:
        raise KeyError(
            f"GPU '{gpu_id}' not found in dbgpu (key='{dbgpu_key}'). "
            f"Update GPU_ID_TO_DBGPU_KEY or upgrade dbgpu."
        )
    gpu = specs_map[dbgpu_key]

    manufacturer = _MANUFACTURERS.get(gpu.manufacturer)
    if manufacturer is None:
        raise KeyError(f"GPU '{gpu_id}' has unsupported manufacturer '{gpu.manufacturer}'")

    if gpu.memory_size_gb is None or gpu.memory_bandwidth_gb_s is None:
        raise KeyError(f"GPU '{gpu_id}' has no memory size/bandwidth in dbgpu")

    record = GpuRecord(
        id=gpu_id,
        name=gpu.name,
        manufacturer=manufacturer,
        vram_gb=round(gpu.memory_size_gb, 1),
        bandwidth_gbps=round(gpu.memory_bandwidth_gb_s),
    )
    logger.debug("  %s: %.1f GB, %s GB/s", gpu_id, record.vram_gb, record.bandwidth_gbps)
    return record


def fetch_gpu_records(mapping: dict[str, str] | None = None) -> list[GpuRecord]:
    """Build GPU records for every entry in *mapping* (default: GPU_ID_TO_DBGPU_KEY)."""
    if mapping is None:
        mapping = GPU_ID_TO_DBGPU_KEY

    db = GPUDatabase.default()
    records = [gpu_record_from_dbgpu(gpu_id, key, db) for gpu_id, key in mapping.items()]
    logger.info("Fetched specs for %d GPUs from dbgpu", len(records))
    return records
