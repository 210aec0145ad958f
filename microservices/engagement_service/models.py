"""
Engagement Service Data Models

View tracking and favorites
"""

from typing import Optional
from pydantic import BaseModel

from core.errors import ValidationError


class ViewerIdentity(BaseModel):
    """
    Who is viewing a campaign.

    Authenticated viewers are keyed by user id; anonymous viewers by a
    session id or, failing that, the client address.
    """
    user_id: Optional[str] = None
    session_key: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def viewer_key(self) -> str:
        if self.user_id:
            return f"user:{self.user_id}"
        if self.session_key:
            return f"anon:{self.session_key}"
        raise ValidationError("A viewer must be identified by a user or a session")


class ViewResult(BaseModel):
    """Outcome of a tracked view"""
    counted: bool
    view_count: int


class FavoriteStatus(BaseModel):
    """Favorite state of a campaign for one user"""
    campaign_id: str
    is_favorited: bool
    favorite_count: Optional[int] = None
