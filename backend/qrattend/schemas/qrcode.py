"""
Schémas Pydantic pour les QR codes de session.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class QRCodeResponse(BaseModel):
    """QR code émis pour une session, avec la référence de son image si elle existe."""
    id: uuid.UUID
    session_id: uuid.UUID
    code: str
    created_at: datetime
    expired_at: datetime
    image_url: Optional[str]

    model_config = {"from_attributes": True}
