"""CLI entry point: which models run on this GPU?"""

import argparse
import logging
import sys
from pathlib import Path

from vramfit.catalog import load_gpus, load_models
from vramfit.config import AGENTIC_MIN_CONTEXT_K, GPUS_PATH, MODELS_PATH
from vramfit.engine.bucketing import Benchmark, BucketResult, EnrichedEntry, bucket_catalog
from vramfit.engine.grouping import group_variants
from vramfit.engine.resources import ScaledResources, scale_resources
from vramfit.errors import CatalogValidationError
from vramfit.exporters.json_export import export_buckets
from vramfit.formatting import context_label, offload_label, tok_label
from vramfit.hardware import find_gpu, manual_resources, resolve_budget
from vramfit.sources.dbgpu_source import fetch_gpu_records

logger = logging.getLogger(__name__)

BUCKET_TITLES = [("fits", "Runs well"), ("tight", "Tight fit"), ("no_fit", "Won't fit")]


def effective_min_context(min_context_k: int | None, agentic: bool) -> int | None:
    """Raise the minimum context to the agentic floor when agentic mode is on."""
    if not agentic:
        return min_context_k
    return max(min_context_k or 0, AGENTIC_MIN_CONTEXT_K)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find quantized LLMs that fit a GPU")
    parser.add_argument("--models", type=Path, default=MODELS_PATH, help="models.json catalog")
    parser.add_argument("--gpus", type=Path, default=GPUS_PATH, help="gpus.json catalog")
    parser.add_argument(
        "--gpu-source",
        choices=["catalog", "dbgpu"],
        default="catalog",
        help="Where GPU records come from (default: catalog)",
    )

    hw = parser.add_mutually_exclusive_group(required=True)
    hw.add_argument("--gpu", help="GPU id from the catalog")
    hw.add_argument("--vram", type=float, help="Manual VRAM in GB (bandwidth unknown)")
    parser.add_argument(
        "--unified-vram",
        type=float,
        help="Memory configuration (GB) for unified-memory chips",
    )
    parser.add_argument("--bandwidth", type=float, help="Bandwidth in GB/s for --vram")
    parser.add_argument(
        "--gpu-count",
        type=int,
        choices=range(1, 9),
        default=1,
        metavar="{1..8}",
        help="Number of identical GPUs",
    )
    parser.add_argument("--system-ram", type=float, help="System RAM (GB) available for offload")

    parser.add_argument("--min-context", type=int, help="Minimum context in K tokens")
    parser.add_argument("--min-speed", type=float, help="Minimum tokens/sec")
    parser.add_argument(
        "--feature",
        action="append",
        default=[],
        choices=["vision", "reasoning", "tool_use"],
        help="Required feature (repeatable)",
    )
    parser.add_argument("--coding", action="store_true", help="Rank by SWE-bench instead of MMLU")
    parser.add_argument(
        "--agentic",
        action="store_true",
        help=f"Agentic coding: rank by SWE-bench, require >= {AGENTIC_MIN_CONTEXT_K}K context",
    )
    parser.add_argument("--group", action="store_true", help="Collapse quantization variants")
    parser.add_argument("--output", type=Path, help="Write results as JSON to this path")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
    )
    return parser


def resolve_hardware(args: argparse.Namespace) -> ScaledResources:
    """Resolve CLI hardware arguments into a pooled VRAM/bandwidth budget."""
    if args.vram is not None:
        unit = manual_resources(args.vram, args.bandwidth)
        return scale_resources(unit.vram, unit.bandwidth, args.gpu_count)

    if args.gpu_source == "dbgpu":
        gpus = fetch_gpu_records()
    else:
        gpus = load_gpus(args.gpus)
    gpu = find_gpu(gpus, args.gpu)
    return resolve_budget(gpu, args.unified_vram, args.gpu_count)


def _describe(entry: EnrichedEntry) -> str:
    parts = [
        f"{entry.name} [{entry.model.quantization}]",
        f"{entry.weight_gb:.1f} GB",
        f"ctx {context_label(entry.usable_context_k)}",
        entry.tier.label,
    ]
    speed = tok_label(entry.tokens_per_sec)
    if speed:
        parts.append(speed)
    if entry.offload is not None:
        parts.append(offload_label(entry.offload))
    if entry.context_breakdown is not None:
        parts.append(f"+{context_label(entry.context_breakdown.ram_context_k)} ctx in RAM")
    return "  ".join(parts)


def print_buckets(result: BucketResult, *, grouped: bool = False) -> None:
    for key, title in BUCKET_TITLES:
        entries = getattr(result, key)
        print(f"\n== {title} ({len(entries)}) ==")
        if grouped:
            for group in group_variants(entries):
                print(f"{group.name} ({group.params_b}B, {group.tier.label})")
                for variant in group.variants:
                    print(f"    {_describe(variant)}")
        else:
            for entry in entries:
                print(_describe(entry))


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.bandwidth is not None and args.vram is None:
        parser.error("--bandwidth only applies to --vram")

    try:
        models = load_models(args.models)
        budget = resolve_hardware(args)
    except (CatalogValidationError, KeyError, ValueError) as e:
        logger.error("%s", e)
        return 1

    benchmark = Benchmark.CODING if (args.coding or args.agentic) else Benchmark.GENERAL
    min_context_k = effective_min_context(args.min_context, args.agentic)

    logger.info(
        "Budget: %.1f GB VRAM, bandwidth=%s GB/s, system RAM=%s GB",
        budget.vram,
        budget.bandwidth,
        args.system_ram,
    )
    result = bucket_catalog(
        models,
        budget.vram,
        budget.bandwidth,
        min_context_k=min_context_k,
        min_speed=args.min_speed,
        required_features=args.feature,
        benchmark=benchmark,
        system_ram_gb=args.system_ram,
    )

    print_buckets(result, grouped=args.group)

    if args.output is not None:
        export_buckets(
            result,
            args.output,
            grouped=args.group,
            budget={
                **budget.to_dict(),
                "system_ram_gb": args.system_ram,
                "min_context_k": min_context_k,
                "min_speed": args.min_speed,
                "features": args.feature,
                "benchmark": benchmark.value,
            },
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
