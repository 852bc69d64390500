"""Tests for catalog record validation and loading."""

import json

import pytest
from pydantic import ValidationError

from vramfit.catalog import (
    GpuRecord,
    ModelRecord,
    load_gpus,
    load_models,
    parse_gpus,
    parse_models,
    validate_models,
)
from vramfit.errors import CatalogValidationError

VALID_MODEL = {
    "id": "qwen2.5-coder-7b-q4",
    "name": "Qwen2.5 Coder 7B",
    "params_b": 7.62,
    "quantization": "Q4_K_M",
    "weight_gb": 4.68,
    "kv_per_1k_gb": 0.055,
    "max_context_k": 128,
    "layers": 28,
    "mmlu_score": 68.0,
    "swe_bench_score": 6.2,
    "features": ["tool_use"],
    "notes": "test fixture",
}

DISCRETE_GPU = {
    "id": "rtx-4090",
    "name": "GeForce RTX 4090",
    "manufacturer": "NVIDIA",
    "vram_gb": 24,
    "bandwidth_gbps": 1008,
}

UNIFIED_GPU = {
    "id": "apple-m4-max",
    "name": "Apple M4 Max",
    "manufacturer": "Apple",
    "vram_options": [
        {"vram_gb": 36, "bandwidth_gbps": 410},
        {"vram_gb": 128, "bandwidth_gbps": 546},
    ],
}


def _variant(**overrides) -> dict:
    return {**VALID_MODEL, **overrides}


# ===================================================================
# ModelRecord
# ===================================================================


class TestModelRecord:
    def test_valid(self):
        model = ModelRecord.model_validate(VALID_MODEL)
        assert model.features == ("tool_use",)
        assert model.swe_bench_score == 6.2

    def test_defaults(self):
        row = {k: v for k, v in VALID_MODEL.items() if k not in ("layers", "features")}
        row["swe_bench_score"] = None
        model = ModelRecord.model_validate(row)
        assert model.layers == 0
        assert model.features == ()
        assert model.swe_bench_score is None

    @pytest.mark.parametrize("bad_id", ["Qwen-7B", "qwen_7b", "-qwen", "qwen--7b", ""])
    def test_rejects_non_kebab_id(self, bad_id):
        with pytest.raises(ValidationError):
            ModelRecord.model_validate(_variant(id=bad_id))

    @pytest.mark.parametrize(
        "field,value",
        [
            ("quantization", "Q5_K_M"),
            ("params_b", 0),
            ("weight_gb", 0.05),
            ("weight_gb", 250),
            ("kv_per_1k_gb", -0.1),
            ("kv_per_1k_gb", 2.5),
            ("max_context_k", 0),
            ("mmlu_score", 101),
            ("swe_bench_score", -1),
            ("name", ""),
        ],
    )
    def test_rejects_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            ModelRecord.model_validate(_variant(**{field: value}))

    @pytest.mark.parametrize("notes", ["", None])
    def test_requires_notes(self, notes):
        with pytest.raises(ValidationError, match="notes"):
            ModelRecord.model_validate(_variant(notes=notes))

    def test_missing_notes_rejected(self):
        row = {k: v for k, v in VALID_MODEL.items() if k != "notes"}
        with pytest.raises(ValidationError, match="notes"):
            ModelRecord.model_validate(row)

    def test_rejects_unknown_feature(self):
        with pytest.raises(ValidationError):
            ModelRecord.model_validate(_variant(features=["audio"]))

    def test_rejects_duplicate_features(self):
        with pytest.raises(ValidationError, match="duplicate features"):
            ModelRecord.model_validate(_variant(features=["vision", "vision"]))

    def test_is_immutable(self):
        model = ModelRecord.model_validate(VALID_MODEL)
        with pytest.raises(ValidationError):
            model.weight_gb = 1.0


# ===================================================================
# GpuRecord
# ===================================================================


class TestGpuRecord:
    def test_discrete(self):
        gpu = GpuRecord.model_validate(DISCRETE_GPU)
        assert not gpu.is_unified
        assert gpu.vram_gb == 24

    def test_unified(self):
        gpu = GpuRecord.model_validate(UNIFIED_GPU)
        assert gpu.is_unified
        assert [o.vram_gb for o in gpu.vram_options] == [36, 128]

    def test_apple_must_be_unified(self):
        with pytest.raises(ValidationError, match="vram_options"):
            GpuRecord.model_validate({**DISCRETE_GPU, "manufacturer": "Apple"})

    def test_both_shapes_rejected(self):
        with pytest.raises(ValidationError, match="must not set"):
            GpuRecord.model_validate({**UNIFIED_GPU, "vram_gb": 36})

    def test_discrete_needs_bandwidth(self):
        row = {k: v for k, v in DISCRETE_GPU.items() if k != "bandwidth_gbps"}
        with pytest.raises(ValidationError, match="both vram_gb and bandwidth_gbps"):
            GpuRecord.model_validate(row)

    def test_options_must_increase(self):
        options = [{"vram_gb": 64, "bandwidth_gbps": 546}, {"vram_gb": 64, "bandwidth_gbps": 546}]
        with pytest.raises(ValidationError, match="strictly increasing"):
            GpuRecord.model_validate({**UNIFIED_GPU, "vram_options": options})

    def test_empty_options_rejected(self):
        with pytest.raises(ValidationError, match="must not be empty"):
            GpuRecord.model_validate({**UNIFIED_GPU, "vram_options": []})

    @pytest.mark.parametrize(
        "field,value",
        [("vram_gb", 0.5), ("vram_gb", 300), ("bandwidth_gbps", 40), ("bandwidth_gbps", 2500)],
    )
    def test_discrete_ranges(self, field, value):
        with pytest.raises(ValidationError):
            GpuRecord.model_validate({**DISCRETE_GPU, field: value})

    def test_option_ranges(self):
        options = [{"vram_gb": 1024, "bandwidth_gbps": 546}]
        with pytest.raises(ValidationError):
            GpuRecord.model_validate({**UNIFIED_GPU, "vram_options": options})


# ===================================================================
# Catalog-level validation
# ===================================================================


class TestCatalogValidation:
    def test_valid_variants(self):
        rows = [
            VALID_MODEL,
            _variant(id="qwen2.5-coder-7b-q8", quantization="Q8_0", weight_gb=8.1),
            _variant(id="qwen2.5-coder-7b-fp16", quantization="fp16", weight_gb=15.2),
        ]
        assert len(parse_models(rows)) == 3

    def test_duplicate_ids(self):
        with pytest.raises(CatalogValidationError, match="duplicate id"):
            parse_models([VALID_MODEL, VALID_MODEL])

    @pytest.mark.parametrize(
        "field,value",
        [("params_b", 8.0), ("max_context_k", 32), ("mmlu_score", 70.0), ("kv_per_1k_gb", 0.1)],
    )
    def test_variants_must_share_metadata(self, field, value):
        rows = [
            VALID_MODEL,
            _variant(
                id="qwen2.5-coder-7b-q8", quantization="Q8_0", weight_gb=8.1, **{field: value}
            ),
        ]
        with pytest.raises(CatalogValidationError, match=f"disagree on {field}"):
            parse_models(rows)

    def test_variants_must_share_features(self):
        rows = [
            VALID_MODEL,
            _variant(id="qwen2.5-coder-7b-q8", quantization="Q8_0", weight_gb=8.1, features=[]),
        ]
        with pytest.raises(CatalogValidationError, match="disagree on features"):
            parse_models(rows)

    def test_feature_order_does_not_matter(self):
        a = ModelRecord.model_validate(_variant(features=["vision", "tool_use"]))
        b = ModelRecord.model_validate(
            _variant(
                id="qwen2.5-coder-7b-q8",
                quantization="Q8_0",
                weight_gb=8.1,
                features=["tool_use", "vision"],
            )
        )
        validate_models([a, b])

    def test_weight_must_grow_with_precision(self):
        rows = [
            VALID_MODEL,
            _variant(id="qwen2.5-coder-7b-q8", quantization="Q8_0", weight_gb=4.0),
        ]
        with pytest.raises(CatalogValidationError, match="is not below"):
            parse_models(rows)

    def test_invalid_record_names_model(self):
        with pytest.raises(CatalogValidationError, match="model bad-one"):
            parse_models([_variant(id="bad-one", weight_gb=0)])

    def test_duplicate_gpu_ids(self):
        with pytest.raises(CatalogValidationError, match="duplicate id 'rtx-4090'"):
            parse_gpus([DISCRETE_GPU, DISCRETE_GPU])

    def test_error_carries_source(self):
        with pytest.raises(CatalogValidationError) as exc_info:
            parse_gpus([{**DISCRETE_GPU, "manufacturer": "3dfx"}], source="gpus.json")
        assert exc_info.value.source == "gpus.json"
        assert "rtx-4090" in exc_info.value.details


# ===================================================================
# Loading from disk
# ===================================================================


class TestLoading:
    def test_load_models(self, tmp_path):
        path = tmp_path / "models.json"
        path.write_text(json.dumps([VALID_MODEL]))
        models = load_models(path)
        assert [m.id for m in models] == ["qwen2.5-coder-7b-q4"]

    def test_load_gpus(self, tmp_path):
        path = tmp_path / "gpus.json"
        path.write_text(json.dumps([DISCRETE_GPU, UNIFIED_GPU]))
        assert [g.id for g in load_gpus(path)] == ["rtx-4090", "apple-m4-max"]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "models.json"
        path.write_text("{not json")
        with pytest.raises(CatalogValidationError, match="could not read JSON"):
            load_models(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogValidationError):
            load_gpus(tmp_path / "missing.json")

    @pytest.mark.parametrize("content", ["[]", '{"models": []}'])
    def test_not_a_non_empty_array(self, tmp_path, content):
        path = tmp_path / "models.json"
        path.write_text(content)
        with pytest.raises(CatalogValidationError, match="non-empty JSON array"):
            load_models(path)
