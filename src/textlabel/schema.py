from enum import Enum
from typing import Any, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .config import ENV


class Task(str, Enum):
    SENTIMENT = "sentiment analysis"
    INTENT = "intent classification"
    USER_SIGNAL = "user signal classification"


class Mode(str, Enum):
    ZERO_SHOT = "zero-shot"
    FEW_SHOT = "few-shot"


class Cardinality(str, Enum):
    SINGLE = "single"
    MULTI = "multi"


class FewShotExample(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    label: Tuple[str, ...]
    confidence: float
    ambiguity_detected: bool = False
    review_recommended: bool = False


class TaskSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    display_name: str
    labels: Tuple[str, ...] = Field(..., min_length=2)
    cardinality: Cardinality
    fallback_label: Optional[str] = None
    examples: Tuple[FewShotExample, ...] = ()


class ModelConfig(BaseModel):
    model: str = ENV.model
    temperature: float = ENV.temperature
    top_p: float = ENV.top_p
    seed: Optional[int] = None


class LabelRequest(BaseModel):
    # Optional so that a missing field is reported as InvalidRequest
    # rather than a framework validation error.
    task: Optional[str] = None
    mode: Optional[str] = None
    text: Optional[str] = None


class LLMResponse(BaseModel):
    """Raw completion payload before allow-list enforcement."""

    model_config = ConfigDict(extra="ignore")

    task: Optional[str] = None
    label: Any = None
    confidence: Optional[float] = None
    ambiguity_detected: Optional[bool] = None
    review_recommended: Optional[bool] = None


class LabelResult(BaseModel):
    task: str
    label: Union[str, List[str]]
    confidence: float = Field(..., ge=0.0, le=1.0)
    ambiguity_detected: bool
    review_recommended: bool
