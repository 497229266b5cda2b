from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field

TERMINAL_STATUSES = ("succeeded", "failed")
MAX_SCALE = 10


class UIStatus(str, Enum):
    idle = "idle"
    uploading = "uploading"
    processing = "processing"
    complete = "complete"
    error = "error"


class User(BaseModel):
    id: str
    email: Optional[str] = None


class PredictionInput(BaseModel):
    image: str
    scale: int = Field(4, ge=1, le=MAX_SCALE)
    face_enhance: bool = False


class PredictionRequest(BaseModel):
    model: str
    input: PredictionInput


class Prediction(BaseModel):
    """A remote inference job as reported by the status endpoint."""

    id: Optional[str] = None
    status: str
    output: Optional[Union[str, List[str]]] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def output_url(self) -> str:
        if isinstance(self.output, list):
            if not self.output:
                raise ValueError("Prediction returned no output")
            return self.output[0]
        if not self.output:
            raise ValueError("Prediction returned no output")
        return self.output


class ProcessComplete(BaseModel):
    output_url: str = Field(alias="outputUrl")

    model_config = {"populate_by_name": True}
