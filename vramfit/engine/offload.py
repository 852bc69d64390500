"""Partial weight offload to system RAM and its throughput cost.

Pure computation. When the weights do not fit the VRAM budget, some layers can
live in system RAM at a speed penalty; beyond ``MAX_OFFLOAD_RATIO`` the model
is considered impractical to run.
"""

from dataclasses import dataclass

from vramfit.catalog import ModelRecord
from vramfit.engine.constants import (
    INFERENCE_OVERHEAD_GB,
    MAX_OFFLOAD_RATIO,
    OFFLOAD_BANDWIDTH_BANDS,
    OFFLOAD_PENALTY_CEILING,
    OFFLOAD_PENALTY_FLOOR,
    OFFLOAD_PENALTY_SLOPE,
)
from vramfit.engine.resources import round_half_up


@dataclass(frozen=True)
class OffloadPlan:
    feasible: bool
    gpu_weight_gb: float | None = None
    ram_weight_gb: float | None = None
    offload_ratio: float | None = None
    estimated_layers: int | None = None  # display only

    def to_dict(self) -> dict:
        return {
            "feasible": self.feasible,
            "gpu_weight_gb": self.gpu_weight_gb,
            "ram_weight_gb": self.ram_weight_gb,
            "offload_ratio": self.offload_ratio,
            "estimated_layers": self.estimated_layers,
        }


@dataclass(frozen=True)
class OffloadPenalty:
    penalty_percent: int
    speed_multiplier: float

    def to_dict(self) -> dict:
        return {
            "penalty_percent": self.penalty_percent,
            "speed_multiplier": self.speed_multiplier,
        }


@dataclass(frozen=True)
class OffloadInfo:
    """An active offload plan together with the penalty it costs."""

    plan: OffloadPlan
    penalty: OffloadPenalty

    def to_dict(self) -> dict:
        return {**self.plan.to_dict(), **self.penalty.to_dict()}


_INFEASIBLE = OffloadPlan(feasible=False)


def plan_offload(
    model: ModelRecord,
    vram: float,
    system_ram_gb: float | None,
) -> OffloadPlan:
    """Decide whether the model's weights can be split between VRAM and system RAM."""
    available_for_weights = vram - INFERENCE_OVERHEAD_GB

    if model.weight_gb <= available_for_weights:
        return OffloadPlan(
            feasible=True,
            gpu_weight_gb=model.weight_gb,
            ram_weight_gb=0.0,
            offload_ratio=0.0,
            estimated_layers=0,
        )

    if system_ram_gb is None:
        return _INFEASIBLE

    ram_weight_gb = model.weight_gb - max(available_for_weights, 0)
    offload_ratio = ram_weight_gb / model.weight_gb
    if offload_ratio > MAX_OFFLOAD_RATIO or ram_weight_gb > system_ram_gb:
        return _INFEASIBLE

    return OffloadPlan(
        feasible=True,
        gpu_weight_gb=model.weight_gb - ram_weight_gb,
        ram_weight_gb=ram_weight_gb,
        offload_ratio=offload_ratio,
        estimated_layers=round_half_up(offload_ratio * model.layers),
    )


def _bandwidth_scale(bandwidth: float | None) -> float:
    if bandwidth is None:
        return 1.0
    for upper, scale in OFFLOAD_BANDWIDTH_BANDS:
        if bandwidth < upper:
            return scale
    return 1.0


def offload_penalty(offload_ratio: float, bandwidth: float | None) -> OffloadPenalty:
    """Throughput penalty for running with *offload_ratio* of the weights in RAM.

    15% floor rising linearly to a 50% ceiling, scaled down on slower GPUs.
    No offload means no penalty.
    """
    if offload_ratio <= 0:
        return OffloadPenalty(penalty_percent=0, speed_multiplier=1.0)

    penalty = min(
        OFFLOAD_PENALTY_FLOOR + offload_ratio * OFFLOAD_PENALTY_SLOPE,
        OFFLOAD_PENALTY_CEILING,
    )
    penalty *= _bandwidth_scale(bandwidth)
    return OffloadPenalty(
        penalty_percent=round_half_up(penalty * 100),
        speed_multiplier=1 - penalty,
    )
