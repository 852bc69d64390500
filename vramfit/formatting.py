"""Display labels for context lengths, throughput and offload plans."""

from vramfit.engine.offload import OffloadInfo


def context_label(k: int) -> str:
    """Format a context length in K tokens, e.g. ``128K`` or ``1M``."""
    if k >= 1000:
        return f"{k / 1000:.0f}M"
    return f"{k}K"


def tok_label(tps: int | None) -> str | None:
    """Format a tokens/sec estimate, or None when it is unknown."""
    if tps is None:
        return None
    return f"~{tps} tok/s"


def offload_label(info: OffloadInfo) -> str:
    plan = info.plan
    return (
        f"~{plan.estimated_layers} layers in RAM "
        f"({plan.ram_weight_gb:.1f} GB, -{info.penalty.penalty_percent}%)"
    )
