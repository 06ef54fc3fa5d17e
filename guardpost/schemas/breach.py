from pydantic import BaseModel, field_validator, model_validator
import uuid
from datetime import date, datetime


class BreachCreate(BaseModel):
    guard_id: uuid.UUID | None = None
    contractor_name: str
    start_date: date
    end_date: date
    eligible_return_date: date
    violation_code: str | None = None
    reason: str | None = None

    @field_validator("contractor_name")
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Contractor name is required")
        return v

    @model_validator(mode="after")
    def dates_in_order(self) -> "BreachCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class BreachOut(BaseModel):
    id: uuid.UUID
    guard_id: uuid.UUID | None
    contractor_name: str
    start_date: date
    end_date: date
    eligible_return_date: date
    violation_code: str | None
    reason: str | None
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class BreachBoardRow(BreachOut):
    days_left: int
    severity: str  # today | soon | later
