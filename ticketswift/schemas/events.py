from datetime import datetime
from pydantic import BaseModel
from typing import Optional


class EventIn(BaseModel):
    name: str
    venue: str = ""
    activityUrl: str = ""
    onSaleDate: Optional[datetime] = None
    endDate: datetime
    actualTicketTime: Optional[datetime] = None
    pricePoints: int = 0
    codePrefix: str = ""
