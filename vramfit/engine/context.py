"""Maximum usable context length from a VRAM budget, optionally extended by system RAM."""

import math
from dataclasses import dataclass

from vramfit.catalog import ModelRecord


@dataclass(frozen=True)
class ContextEstimate:
    """Usable context split into the parts held in VRAM and in system RAM."""

    context_k: int
    vram_context_k: int
    ram_context_k: int
    using_system_ram: bool

    def to_dict(self) -> dict:
        return {
            "context_k": self.context_k,
            "vram_context_k": self.vram_context_k,
            "ram_context_k": self.ram_context_k,
            "using_system_ram": self.using_system_ram,
        }


def estimate_max_context(model: ModelRecord, vram: float) -> int:
    """Max context (K tokens) that fits next to the weights, capped at the model maximum.

    Returns 0 when the weights alone fill the budget.
    """
    available_for_kv = vram - model.weight_gb
    if available_for_kv <= 0:
        return 0
    if model.kv_per_1k_gb <= 0:
        return model.max_context_k
    return min(math.floor(available_for_kv / model.kv_per_1k_gb), model.max_context_k)


def estimate_max_context_with_offload(
    model: ModelRecord,
    vram: float,
    system_ram_gb: float | None,
) -> ContextEstimate:
    """Like ``estimate_max_context`` but lets the KV cache spill into system RAM.

    Only applies when the weights fit in VRAM. The RAM share is reported as
    the part actually used once the total is capped at ``max_context_k``.
    When VRAM alone reaches the cap, ``vram_context_k`` is reported capped
    too, not as the raw VRAM-only figure.
    """
    basic = estimate_max_context(model, vram)
    if system_ram_gb is None or system_ram_gb <= 0:
        return ContextEstimate(basic, basic, 0, False)

    available_for_kv = vram - model.weight_gb
    if available_for_kv <= 0 or model.kv_per_1k_gb <= 0:
        return ContextEstimate(basic, basic, 0, False)

    vram_ctx_k = math.floor(available_for_kv / model.kv_per_1k_gb)
    if vram_ctx_k >= model.max_context_k:
        return ContextEstimate(model.max_context_k, model.max_context_k, 0, False)

    ram_ctx_k = math.floor(system_ram_gb / model.kv_per_1k_gb)
    total = min(vram_ctx_k + ram_ctx_k, model.max_context_k)
    ram_used_k = total - vram_ctx_k
    return ContextEstimate(
        context_k=total,
        vram_context_k=vram_ctx_k,
        ram_context_k=ram_used_k,
        using_system_ram=ram_used_k > 0,
    )
