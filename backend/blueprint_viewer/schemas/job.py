from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class JobStatus(str, Enum):
    CAPTURING = "capturing"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"


class JobSnapshot(BaseModel):
    """Job record as delivered by the persistence/subscription layer."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    status: JobStatus = JobStatus.COMPLETE
    blueprint_data: Any = Field(default=None, alias="blueprintData")

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        if isinstance(value, str):
            cleaned = value.strip().lower()
            # Older records use "error" for the failed phase.
            return "failed" if cleaned == "error" else cleaned
        return value
