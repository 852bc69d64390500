"""Classify a model catalog into fits / tight / no-fit buckets and rank each bucket."""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from vramfit.catalog import ModelRecord
from vramfit.engine.constants import TIGHT_FIT_CONTEXT_K
from vramfit.engine.context import (
    ContextEstimate,
    estimate_max_context,
    estimate_max_context_with_offload,
)
from vramfit.engine.offload import OffloadInfo, offload_penalty, plan_offload
from vramfit.engine.resources import round_half_up
from vramfit.engine.throughput import estimate_throughput
from vramfit.engine.tiers import QualityTier, classify_coding_tier, classify_general_tier

logger = logging.getLogger(__name__)


class Benchmark(Enum):
    GENERAL = "mmlu"
    CODING = "swe_bench"


@dataclass(frozen=True)
class EnrichedEntry:
    """A model record plus everything computed for one hardware budget."""

    model: ModelRecord
    usable_context_k: int
    fits_at_all: bool
    meets_min_context: bool
    meets_min_speed: bool
    meets_features: bool
    model_supports_context: bool
    tokens_per_sec: int | None
    tier: QualityTier
    offload: OffloadInfo | None = None
    context_breakdown: ContextEstimate | None = None

    @property
    def id(self) -> str:
        return self.model.id

    @property
    def name(self) -> str:
        return self.model.name

    @property
    def weight_gb(self) -> float:
        return self.model.weight_gb

    def score(self, benchmark: "Benchmark") -> float | None:
        if benchmark is Benchmark.CODING:
            return self.model.swe_bench_score
        return self.model.mmlu_score

    def to_dict(self) -> dict:
        row = self.model.model_dump(mode="json")
        row.update(
            {
                "usable_context_k": self.usable_context_k,
                "fits_at_all": self.fits_at_all,
                "meets_min_context": self.meets_min_context,
                "meets_min_speed": self.meets_min_speed,
                "meets_features": self.meets_features,
                "model_supports_context": self.model_supports_context,
                "tokens_per_sec": self.tokens_per_sec,
                "tier": self.tier.to_dict(),
                "offload": self.offload.to_dict() if self.offload else None,
                "context_breakdown": (
                    self.context_breakdown.to_dict() if self.context_breakdown else None
                ),
            }
        )
        return row


@dataclass
class BucketResult:
    fits: list[EnrichedEntry] = field(default_factory=list)
    tight: list[EnrichedEntry] = field(default_factory=list)
    no_fit: list[EnrichedEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "fits": [e.to_dict() for e in self.fits],
            "tight": [e.to_dict() for e in self.tight],
            "no_fit": [e.to_dict() for e in self.no_fit],
        }


def _offloaded_context(model: ModelRecord, system_ram_gb: float, ram_weight_gb: float) -> int:
    """Context when the KV cache lives in the system RAM left over after offloaded weights."""
    remaining = system_ram_gb - ram_weight_gb
    if remaining <= 0:
        return 0
    if model.kv_per_1k_gb <= 0:
        return model.max_context_k
    return min(math.floor(remaining / model.kv_per_1k_gb), model.max_context_k)


def enrich(
    model: ModelRecord,
    vram: float,
    bandwidth: float | None,
    min_context_k: int | None,
    min_speed: float | None,
    required_features: Iterable[str],
    benchmark: Benchmark,
    system_ram_gb: float | None,
) -> EnrichedEntry:
    """Compute fit, context, speed, features and tier for one model."""
    max_ctx_k = estimate_max_context(model, vram)
    # Weights plus the cost of a 1K-token minimum context
    fits_at_all = vram >= model.weight_gb + model.kv_per_1k_gb

    offload: OffloadInfo | None = None
    breakdown: ContextEstimate | None = None
    if system_ram_gb is not None:
        if not fits_at_all:
            plan = plan_offload(model, vram, system_ram_gb)
            if plan.feasible and plan.offload_ratio > 0:
                fits_at_all = True
                penalty = offload_penalty(plan.offload_ratio, bandwidth)
                offload = OffloadInfo(plan=plan, penalty=penalty)
                max_ctx_k = _offloaded_context(model, system_ram_gb, plan.ram_weight_gb)
        else:
            extended = estimate_max_context_with_offload(model, vram, system_ram_gb)
            max_ctx_k = extended.context_k
            if extended.using_system_ram:
                breakdown = extended

    # A model trained for less context than required can never qualify.
    model_supports_ctx = min_context_k is None or model.max_context_k >= min_context_k
    meets_min_ctx = min_context_k is None or max_ctx_k >= min_context_k

    tok_per_sec = estimate_throughput(model, bandwidth)
    if offload is not None and tok_per_sec is not None:
        tok_per_sec = round_half_up(tok_per_sec * offload.penalty.speed_multiplier)
    meets_min_speed = min_speed is None or tok_per_sec is None or tok_per_sec >= min_speed

    meets_features = all(f in model.features for f in required_features)

    if benchmark is Benchmark.CODING:
        tier = classify_coding_tier(model.swe_bench_score)
    else:
        tier = classify_general_tier(model.mmlu_score)

    return EnrichedEntry(
        model=model,
        usable_context_k=max_ctx_k,
        fits_at_all=fits_at_all,
        meets_min_context=meets_min_ctx,
        meets_min_speed=meets_min_speed,
        meets_features=meets_features,
        model_supports_context=model_supports_ctx,
        tokens_per_sec=tok_per_sec,
        tier=tier,
        offload=offload,
        context_breakdown=breakdown,
    )


def _score_key(entry: EnrichedEntry, benchmark: Benchmark) -> tuple[bool, float]:
    """Descending score, missing scores last."""
    score = entry.score(benchmark)
    return (score is None, -(score or 0.0))


def bucket_catalog(
    catalog: Iterable[ModelRecord],
    vram: float,
    bandwidth: float | None,
    min_context_k: int | None = None,
    min_speed: float | None = None,
    required_features: Iterable[str] = (),
    benchmark: Benchmark = Benchmark.GENERAL,
    system_ram_gb: float | None = None,
) -> BucketResult:
    """Bucket every model in *catalog* for the given hardware budget and filters.

    First matching rule wins:

    * weights don't fit even with offload, or the model's trained context is
      below *min_context_k* -> ``no_fit``
    * weights partially offloaded to system RAM -> ``tight``
    * minimum context, minimum speed or required features unmet -> ``tight``
    * usable context below ``TIGHT_FIT_CONTEXT_K`` -> ``tight``
    * otherwise -> ``fits``

    ``fits`` and ``tight`` sort by the selected benchmark descending, then
    usable context descending; ``no_fit`` breaks ties by weight descending.
    """
    required = tuple(required_features)
    result = BucketResult()

    for model in catalog:
        e = enrich(
            model, vram, bandwidth, min_context_k, min_speed, required, benchmark, system_ram_gb
        )
        if not e.fits_at_all or not e.model_supports_context:
            result.no_fit.append(e)
        elif e.offload is not None:
            # Offloading never counts as running well.
            result.tight.append(e)
        elif not e.meets_min_context or not e.meets_min_speed or not e.meets_features:
            result.tight.append(e)
        elif e.usable_context_k < TIGHT_FIT_CONTEXT_K:
            result.tight.append(e)
        else:
            result.fits.append(e)

    result.fits.sort(key=lambda e: (*_score_key(e, benchmark), -e.usable_context_k))
    result.tight.sort(key=lambda e: (*_score_key(e, benchmark), -e.usable_context_k))
    result.no_fit.sort(key=lambda e: (*_score_key(e, benchmark), -e.weight_gb))

    logger.debug(
        "Bucketed %d models at %.1f GB VRAM: %d fit, %d tight, %d no-fit",
        len(result.fits) + len(result.tight) + len(result.no_fit),
        vram,
        len(result.fits),
        len(result.tight),
        len(result.no_fit),
    )
    return result
