from pydantic import BaseModel
from typing import Optional


class CreateOrderRequest(BaseModel):
    # exactly one of packageId (points top-up) or eventId (direct code purchase)
    packageId: Optional[int] = None
    eventId: Optional[str] = None
