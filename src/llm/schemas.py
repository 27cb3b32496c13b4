from __future__ import annotations
from typing import List
from pydantic import BaseModel, Field

from echoflow.models import RawCandidate

class ClassifierResult(BaseModel):
    reply: str = ""
    candidates: List[RawCandidate] = Field(default_factory=list)
