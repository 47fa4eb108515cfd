"""
CallScreen - Telephony Data Models

Pydantic models for call platform webhook requests and responses.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from callscreen.core.types import CallContext


class IncomingCallRequest(BaseModel):
    """
    Request body for POST /api/telephony/incoming

    Supports both Twilio-style (CamelCase with aliases) and
    generic (snake_case) field names.
    """

    model_config = ConfigDict(populate_by_name=True)

    call_id: str = Field(default="", alias="CallSid", description="Provider's call ID")
    caller_id: Optional[str] = Field(default="", alias="From", description="Caller ID (CLI)")
    called_number: Optional[str] = Field(default="", alias="To", description="Dialed number (DID)")
    direction: str = Field(default="inbound", alias="Direction", description="Call direction")

    @field_validator("caller_id", "called_number", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else str(value)

    @property
    def is_inbound(self) -> bool:
        # Twilio reports "outbound-api" / "outbound-dial" for outbound legs
        return not self.direction.strip().lower().startswith("outbound")

    def to_call_context(self) -> CallContext:
        return CallContext(
            caller_id=self.caller_id or "",
            called_number=self.called_number or "",
            is_inbound=self.is_inbound,
            call_id=self.call_id,
        )


class ScreeningResponse(BaseModel):
    """Decision returned to the call platform."""

    call_id: str = Field(default="", description="Provider's call ID (echoed)")
    request_id: str = Field(..., description="Screening request ID")
    state: str = Field(..., description="Outcome state")
    action: str = Field(..., description="terminate | continue")
    handled: bool = Field(..., description="True if the call was finally handled (blocked)")
    votes: int = 0
    rating: str = ""
    log: List[str] = Field(default_factory=list, description="PhoneBlock call log lines for this call")
