from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..workflow.types import StringRef, TransformMetadata

PREVIEW_LENGTH = 200


class StepStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    skipped = "skipped"


class TransformRecord(BaseModel):
    type: str
    inputs: List[str] = Field(default_factory=list)
    params: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime

    @classmethod
    def from_metadata(cls, metadata: TransformMetadata) -> "TransformRecord":
        return cls(
            type=metadata.type,
            inputs=list(metadata.inputs),
            params=dict(metadata.params),
            timestamp=metadata.timestamp,
        )


class RefRecord(BaseModel):
    id: str
    token: Optional[str] = None
    file_name: Optional[str] = None
    timestamp: datetime
    preview: str = ""
    metadata: List[TransformRecord] = Field(default_factory=list)

    @classmethod
    def from_ref(cls, ref: StringRef) -> "RefRecord":
        text = ref.content if isinstance(ref.content, str) else repr(ref.content)
        if len(text) > PREVIEW_LENGTH:
            text = text[:PREVIEW_LENGTH] + "..."
        return cls(
            id=ref.id,
            token=ref.token,
            file_name=ref.file_name,
            timestamp=ref.timestamp,
            preview=text,
            metadata=[TransformRecord.from_metadata(m) for m in ref.metadata],
        )


class WorkflowStep(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    name: Optional[str] = None
    command: str = Field(..., min_length=1)
    params: Dict[str, Any] = Field(default_factory=dict, alias="with")


class WorkflowDefinition(BaseModel):
    name: str = "Unnamed"
    description: Optional[str] = None
    output_dir: Optional[str] = None
    steps: List[WorkflowStep] = Field(default_factory=list)


__all__ = [
    "StepStatus",
    "TransformRecord",
    "RefRecord",
    "WorkflowStep",
    "WorkflowDefinition",
]
