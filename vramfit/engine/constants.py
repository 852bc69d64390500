"""Constants for the compatibility engine."""

# Memory reserved for inference engine internals (activations, scratch
# buffers, KV reads during decode). Empirically derived from llama.cpp-based
# engines on consumer GPUs.
INFERENCE_OVERHEAD_GB = 1.0

# Models with less usable context than this (K tokens) are a tight fit
# regardless of any requested minimum.
TIGHT_FIT_CONTEXT_K = 4

# Past this fraction of weights in system RAM, offloading is not practical.
MAX_OFFLOAD_RATIO = 0.5

# Offload penalty: 15% floor rising linearly to a 50% ceiling as the offload
# ratio approaches MAX_OFFLOAD_RATIO.
OFFLOAD_PENALTY_FLOOR = 0.15
OFFLOAD_PENALTY_SLOPE = 0.70
OFFLOAD_PENALTY_CEILING = 0.50

# (upper bandwidth bound in GB/s, penalty scale). Slower GPUs sit closer to
# system-RAM speed, so offloading costs them relatively less.
OFFLOAD_BANDWIDTH_BANDS: list[tuple[float, float]] = [
    (400, 0.80),
    (700, 0.90),
]

# Multi-GPU bandwidth efficiency by unit count; counts above the last key use
# the last value.
MULTI_UNIT_EFFICIENCY: dict[int, float] = {
    2: 0.85,
    3: 0.75,
    4: 0.70,
}

MAX_UNIT_COUNT = 8
