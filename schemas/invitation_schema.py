from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import List, Literal, Optional
from datetime import datetime

from models.models import InvitationStatus


# ============================================================
# ✅ Send Invitations (input)
# ============================================================
class InvitationSend(BaseModel):
    emails: List[EmailStr] = Field(default_factory=list)
    # workspace_id comes from the path; the sender is the authorised owner


# ============================================================
# ✅ Accept / Reject (input)
# ============================================================
class InvitationActionRequest(BaseModel):
    workspace_id: int
    invitation_id: int
    action: Literal["accepted", "rejected"]


# ============================================================
# ✅ Read Invitation (output)
# ============================================================
class InvitationRead(BaseModel):
    id: int
    workspace_id: int
    email: str
    status: InvitationStatus
    timestamp: datetime
    acted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
