from __future__ import annotations


class OptimizationError(Exception):
    http_status = 500
    stage = "optimization"


class ValidationError(OptimizationError):
    http_status = 400
    stage = "validation"

    def __init__(self, message: str = "ASIN is required."):
        super().__init__(message)


class StageFailureError(OptimizationError):
    """A pipeline stage failed; the collaborator's exception is kept on ``cause``."""

    default_message = "Optimization stage failed"

    def __init__(self, cause: BaseException, message: str | None = None):
        super().__init__(f"{message or self.default_message}: {cause}")
        self.cause = cause


class SourceFetchError(StageFailureError):
    http_status = 422
    stage = "fetch"
    default_message = "Failed to scrape product data"


class GenerationError(StageFailureError):
    http_status = 502
    stage = "generation"
    default_message = "AI optimization failed"


class PersistenceError(StageFailureError):
    http_status = 500
    stage = "persistence"
    default_message = "Failed to save optimization"


class OptimizationCancelledError(OptimizationError):
    # nginx's "client closed request"
    http_status = 499
    stage = "cancelled"

    def __init__(self, asin: str, next_stage: str, during: bool = False):
        where = "during" if during else "before"
        super().__init__(f"Optimization for {asin} cancelled {where} {next_stage}")
        self.asin = asin
        self.next_stage = next_stage
        self.during = during


class OptimizationStoreError(Exception):
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Optimization store error during {operation}: {reason}")
        self.operation = operation
        self.reason = reason
