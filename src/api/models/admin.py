"""Administrative maintenance models."""

from pydantic import Field

from api.models.base import CamelModel, OperationResult


class BackfillRequest(CamelModel):
    batch_size: int = Field(default=100, ge=1, le=500)
    max_batches: int = Field(default=50, ge=1, le=1000)
    force: bool = False


class BackfillResponse(OperationResult):
    total_processed: int | None = None
    total_updated: int | None = None
    total_skipped: int | None = None
    batches_processed: int | None = None
    resolution: int | None = None
