from datetime import datetime

from app.schemas.base import ApiModel

class ChallengeRequest(ApiModel):
    public_key: str

class LinkWalletRequest(ApiModel):
    signature: str

class SigningChallengeResponse(ApiModel):
    id: int
    user_id: int
    public_key: str
    message: str
    created_at: datetime
    updated_at: datetime
