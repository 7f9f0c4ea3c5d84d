from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Literal, Optional


class PreferencesIn(BaseModel):
    """Purchasing preferences attached to a verification code."""
    seatKeywordOrder: List[str] = Field(default_factory=list)
    sessionIndex: int = 1
    ticketCount: int = 1

    @field_validator("seatKeywordOrder", mode="before")
    @classmethod
    def split_csv(cls, v):
        # the web form posts "VIP, GA" as one string
        if isinstance(v, str):
            return [s for s in v.split(",")]
        return v


class PaymentOutcome(BaseModel):
    method: Literal["points", "order"] = "points"
    orderId: Optional[str] = None


class IssueCodeRequest(BaseModel):
    eventId: str
    preferences: PreferencesIn = Field(default_factory=PreferencesIn)
    paymentOutcome: PaymentOutcome = Field(default_factory=PaymentOutcome)


class UpdatePreferencesRequest(BaseModel):
    preferences: PreferencesIn


class RedeemRequest(BaseModel):
    verificationCode: Optional[str] = None


class BindRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    verificationCode: Optional[str] = None
    # the desktop agent still sends tixcraftAccount
    externalAccountId: Optional[str] = Field(default=None, alias="tixcraftAccount")
    deviceId: Optional[str] = None
