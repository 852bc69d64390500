"""Export bucketing results to JSON."""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from vramfit.engine.bucketing import BucketResult
from vramfit.engine.grouping import group_variants

logger = logging.getLogger(__name__)


def buckets_to_dict(result: BucketResult, *, grouped: bool = False) -> dict:
    """Serialize a bucket result, optionally collapsing quantization variants."""
    if not grouped:
        return result.to_dict()
    return {
        "fits": [g.to_dict() for g in group_variants(result.fits)],
        "tight": [g.to_dict() for g in group_variants(result.tight)],
        "no_fit": [g.to_dict() for g in group_variants(result.no_fit)],
    }


def export_buckets(
    result: BucketResult,
    path: Path,
    *,
    grouped: bool = False,
    budget: dict | None = None,
) -> Path:
    """Write a bucket result to *path* as formatted JSON.

    *budget* (the resolved hardware and filters) is recorded alongside the
    buckets when given.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    data: dict = {"generated_at": datetime.now(UTC).isoformat()}
    if budget is not None:
        data["budget"] = budget
    data.update(buckets_to_dict(result, grouped=grouped))

    path.write_text(json.dumps(data, indent=2) + "\n")
    logger.info(
        "Exported %d fits, %d tight, %d no-fit to %s",
        len(result.fits),
        len(result.tight),
        len(result.no_fit),
        path,
    )
    return path
