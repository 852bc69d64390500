"""Collapse quantization variants of one model into a single display group."""

from dataclasses import dataclass, field

from vramfit.engine.bucketing import EnrichedEntry
from vramfit.engine.tiers import QualityTier


@dataclass
class GroupedEntry:
    """All variants of one model name in a bucket, with shared metadata shown once."""

    name: str
    params_b: float
    tier: QualityTier
    mmlu_score: float
    swe_bench_score: float | None
    features: tuple[str, ...]
    variants: list[EnrichedEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "params_b": self.params_b,
            "tier": self.tier.to_dict(),
            "mmlu_score": self.mmlu_score,
            "swe_bench_score": self.swe_bench_score,
            "features": list(self.features),
            "variants": [v.to_dict() for v in self.variants],
        }


def group_variants(entries: list[EnrichedEntry]) -> list[GroupedEntry]:
    """Group enriched entries by model name.

    Groups keep the order in which each name first appears (the bucket's
    ranking). Variants inside a group are sorted by weight ascending, smallest
    quantization first. Metadata comes from the first-seen variant.
    """
    groups: dict[str, GroupedEntry] = {}
    for entry in entries:
        group = groups.get(entry.name)
        if group is None:
            model = entry.model
            group = GroupedEntry(
                name=model.name,
                params_b=model.params_b,
                tier=entry.tier,
                mmlu_score=model.mmlu_score,
                swe_bench_score=model.swe_bench_score,
                features=tuple(model.features),
            )
            groups[entry.name] = group
        group.variants.append(entry)

    for group in groups.values():
        group.variants.sort(key=lambda v: v.weight_gb)

    return list(groups.values())
