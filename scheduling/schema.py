from datetime import datetime
from pydantic import BaseModel


class SlotSchema(BaseModel):
    start_time: datetime


class EligibilitySchema(BaseModel):
    tutor_id: int
    start_at: datetime
    end_at: datetime
    available: bool
