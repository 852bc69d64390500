"""Validated model and GPU catalog records.

The engine treats these as immutable input. All validation happens here, at
load time; nothing downstream re-checks ranges or shapes.
"""

import json
import logging
import re
from collections import defaultdict
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from vramfit.errors import CatalogValidationError

logger = logging.getLogger(__name__)

Quantization = Literal["Q4_K_M", "Q8_0", "fp16"]
Feature = Literal["vision", "reasoning", "tool_use"]
Manufacturer = Literal["NVIDIA", "AMD", "Intel", "Apple"]

# Lowest to highest precision; weight_gb must grow along this order.
QUANTIZATION_ORDER: tuple[str, ...] = ("Q4_K_M", "Q8_0", "fp16")

_MODEL_ID_RE = re.compile(r"^[a-z0-9]+([-.][a-z0-9]+)*$")
_GPU_ID_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")

# Fields every quantization variant of one model name must agree on.
_SHARED_VARIANT_FIELDS = ("params_b", "max_context_k", "mmlu_score", "kv_per_1k_gb")


class ModelRecord(BaseModel):
    """One quantized build of a model."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(min_length=1)
    params_b: float = Field(gt=0)
    quantization: Quantization
    weight_gb: float = Field(ge=0.1, le=200)
    kv_per_1k_gb: float = Field(ge=0, le=2, description="GB of KV cache per 1K tokens")
    max_context_k: int = Field(gt=0, description="Trained maximum context in K tokens")
    layers: int = Field(0, ge=0, description="Transformer layer count")
    mmlu_score: float = Field(ge=0, le=100)
    swe_bench_score: float | None = Field(None, ge=0, le=100)
    features: tuple[Feature, ...] = ()
    notes: str = Field(min_length=1, description="Source of the figures")

    @field_validator("id")
    @classmethod
    def _check_id(cls, value: str) -> str:
        if not _MODEL_ID_RE.match(value):
            raise ValueError(f"id '{value}' is not kebab-case")
        return value

    @field_validator("features")
    @classmethod
    def _check_features(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if len(set(value)) != len(value):
            raise ValueError(f"duplicate features in {list(value)}")
        return value


class VramOption(BaseModel):
    """One memory configuration of a unified-memory chip."""

    model_config = ConfigDict(frozen=True)

    vram_gb: float = Field(gt=0, le=512)
    bandwidth_gbps: float = Field(gt=0, le=2000)


class GpuRecord(BaseModel):
    """A discrete GPU, or a unified-memory chip with several VRAM options."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(min_length=1)
    manufacturer: Manufacturer
    vram_gb: float | None = Field(None, ge=1, le=256)
    bandwidth_gbps: float | None = Field(None, ge=50, le=2000)
    vram_options: tuple[VramOption, ...] | None = None

    @field_validator("id")
    @classmethod
    def _check_id(cls, value: str) -> str:
        if not _GPU_ID_RE.match(value):
            raise ValueError(f"id '{value}' is not kebab-case")
        return value

    @model_validator(mode="after")
    def _check_shape(self) -> "GpuRecord":
        if self.vram_options is not None:
            if self.vram_gb is not None or self.bandwidth_gbps is not None:
                raise ValueError("unified-memory GPUs must not set vram_gb or bandwidth_gbps")
            if not self.vram_options:
                raise ValueError("vram_options must not be empty")
            sizes = [opt.vram_gb for opt in self.vram_options]
            if any(b <= a for a, b in zip(sizes, sizes[1:])):
                raise ValueError(f"vram_options must be strictly increasing, got {sizes}")
            return self

        if self.manufacturer == "Apple":
            raise ValueError("Apple GPUs must use vram_options")
        if self.vram_gb is None or self.bandwidth_gbps is None:
            raise ValueError("discrete GPUs need both vram_gb and bandwidth_gbps")
        return self

    @property
    def is_unified(self) -> bool:
        return self.vram_options is not None


# ---------------------------------------------------------------------------
# Catalog-level checks
# ---------------------------------------------------------------------------


def _check_unique_ids(records, source: str) -> None:
    seen: set[str] = set()
    for record in records:
        if record.id in seen:
            raise CatalogValidationError(source, f"duplicate id '{record.id}'")
        seen.add(record.id)


def validate_models(models: list[ModelRecord], source: str = "models") -> None:
    """Check cross-record invariants of a model catalog.

    Raises ``CatalogValidationError`` on duplicate ids, on variants of one
    name that disagree on shared metadata, or on weights that do not grow
    with quantization precision.
    """
    _check_unique_ids(models, source)

    by_name: dict[str, list[ModelRecord]] = defaultdict(list)
    for model in models:
        by_name[model.name].append(model)

    for name, variants in by_name.items():
        if len(variants) <= 1:
            continue

        first = variants[0]
        for other in variants[1:]:
            for field_name in _SHARED_VARIANT_FIELDS:
                if getattr(other, field_name) != getattr(first, field_name):
                    raise CatalogValidationError(
                        source,
                        f"'{name}' variants disagree on {field_name}: "
                        f"{first.id}={getattr(first, field_name)}, "
                        f"{other.id}={getattr(other, field_name)}",
                    )
            if sorted(other.features) != sorted(first.features):
                raise CatalogValidationError(
                    source, f"'{name}' variants disagree on features ({first.id}, {other.id})"
                )

        by_quant = sorted(variants, key=lambda m: QUANTIZATION_ORDER.index(m.quantization))
        for lower, higher in zip(by_quant, by_quant[1:]):
            if lower.weight_gb >= higher.weight_gb:
                raise CatalogValidationError(
                    source,
                    f"'{name}': {lower.quantization} weight {lower.weight_gb} GB is not "
                    f"below {higher.quantization} weight {higher.weight_gb} GB",
                )


def validate_gpus(gpus: list[GpuRecord], source: str = "gpus") -> None:
    """Check cross-record invariants of a GPU catalog."""
    _check_unique_ids(gpus, source)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _read_array(path: Path) -> list:
    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        raise CatalogValidationError(str(path), f"could not read JSON: {e}") from e
    if not isinstance(data, list) or not data:
        raise CatalogValidationError(str(path), "expected a non-empty JSON array")
    return data


def parse_models(rows: list[dict], source: str = "models") -> list[ModelRecord]:
    """Validate raw model dicts into records and check the catalog."""
    models = []
    for i, row in enumerate(rows):
        try:
            models.append(ModelRecord.model_validate(row))
        except ValidationError as e:
            label = row.get("id", f"#{i}") if isinstance(row, dict) else f"#{i}"
            raise CatalogValidationError(source, f"model {label}: {e}") from e
    validate_models(models, source)
    return models


def parse_gpus(rows: list[dict], source: str = "gpus") -> list[GpuRecord]:
    """Validate raw GPU dicts into records and check the catalog."""
    gpus = []
    for i, row in enumerate(rows):
        try:
            gpus.append(GpuRecord.model_validate(row))
        except ValidationError as e:
            label = row.get("id", f"#{i}") if isinstance(row, dict) else f"#{i}"
            raise CatalogValidationError(source, f"gpu {label}: {e}") from e
    validate_gpus(gpus, source)
    return gpus


def load_models(path: Path) -> list[ModelRecord]:
    """Load and validate a models.json catalog."""
    models = parse_models(_read_array(path), source=str(path))
    logger.info("Loaded %d models from %s", len(models), path)
    return models


def load_gpus(path: Path) -> list[GpuRecord]:
    """Load and validate a gpus.json catalog."""
    gpus = parse_gpus(_read_array(path), source=str(path))
    logger.info("Loaded %d GPUs from %s", len(gpus), path)
    return gpus
