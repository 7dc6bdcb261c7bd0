# models/water_schemas.py
from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime, date
import uuid

class ContainerPortion(BaseModel):
    """Fraction of a container that was consumed"""
    numerator: int = Field(default=1, gt=0)
    denominator: int = Field(default=1, gt=0)

    @property
    def value(self) -> float:
        return self.numerator / self.denominator

    @property
    def is_full(self) -> bool:
        return self.numerator == self.denominator

    @property
    def label(self) -> str:
        return "Full" if self.is_full else f"{self.numerator}/{self.denominator}"

# Portions offered by the quick-add fraction picker
PORTIONS = [
    ContainerPortion(numerator=1, denominator=4),
    ContainerPortion(numerator=1, denominator=3),
    ContainerPortion(numerator=1, denominator=2),
    ContainerPortion(numerator=2, denominator=3),
    ContainerPortion(numerator=3, denominator=4),
    ContainerPortion(numerator=1, denominator=1),
]

class Container(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    volume_ml: int = Field(gt=0)
    emoji: str = "💧"
    image_ref: Optional[str] = None
    position: int = 0

class ContainerCreate(BaseModel):
    name: str
    volume_ml: int = Field(gt=0)
    emoji: str = "💧"
    image_ref: Optional[str] = None

class ContainerUpdate(BaseModel):
    name: Optional[str] = None
    volume_ml: Optional[int] = Field(default=None, gt=0)
    emoji: Optional[str] = None
    image_ref: Optional[str] = None

class ContainerReorder(BaseModel):
    from_index: int = Field(ge=0)
    to_index: int = Field(ge=0)

class WaterEntry(BaseModel):
    """One logged intake event. Entries are created or deleted, never updated."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    timestamp: datetime
    amount_ml: int = Field(gt=0)
    is_training_day: bool = False
    container_id: Optional[str] = None
    fraction_numerator: Optional[int] = Field(default=None, gt=0)
    fraction_denominator: Optional[int] = Field(default=None, gt=0)

    model_config = {"frozen": True}

    @property
    def day(self) -> date:
        return self.timestamp.date()

    @property
    def portion(self) -> Optional[ContainerPortion]:
        if self.fraction_numerator is None or self.fraction_denominator is None:
            return None
        return ContainerPortion(
            numerator=self.fraction_numerator,
            denominator=self.fraction_denominator
        )

class WaterEntryCreate(BaseModel):
    """
    Log request. Either a custom amount or a container + portion.
    `date` (YYYY-MM-DD) backdates the entry to an earlier day.
    """
    amount_ml: Optional[int] = Field(default=None, gt=0)
    container_id: Optional[str] = None
    numerator: int = Field(default=1, gt=0)
    denominator: int = Field(default=1, gt=0)
    date: Optional[str] = None

    @model_validator(mode="after")
    def check_source(self):
        if self.amount_ml is None and self.container_id is None:
            raise ValueError("Either amount_ml or container_id is required")
        if self.amount_ml is not None and self.container_id is not None:
            raise ValueError("Send amount_ml or container_id, not both")
        return self

class WaterEntryResponse(BaseModel):
    id: str
    user_id: str
    timestamp: datetime
    amount_ml: int
    is_training_day: bool
    container_id: Optional[str]
    fraction_numerator: Optional[int]
    fraction_denominator: Optional[int]
    label: str

class DayProgress(BaseModel):
    day: date
    total_ml: int
    goal_ml: int
    progress: float
    percentage: int
    is_training_day: bool

class DailySummary(BaseModel):
    total_ml: int = 0
    is_training_day: bool = False
    entry_count: int = 0

class MonthStats(BaseModel):
    year: int
    month: int
    average_percentage: int
    current_streak: int
    days: List[DayProgress] = []
