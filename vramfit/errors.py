"""Shared exception types for vramfit."""


class CatalogValidationError(Exception):
    """Raised when a model or GPU catalog fails validation at load time.

    Carries *source* (the catalog file or label) and a human-readable
    *details* string describing the first problem found.
    """

    def __init__(self, source: str, details: str) -> None:
        self.source = source
        self.details = details
        super().__init__(f"Invalid catalog {source}: {details}")


class UnknownGpuError(KeyError):
    """Raised when a GPU id is not present in the loaded catalog."""

    def __init__(self, gpu_id: str) -> None:
        self.gpu_id = gpu_id
        super().__init__(gpu_id)

    def __str__(self) -> str:
        return f"Unknown GPU id '{self.gpu_id}'"
