"""
Authentication Models

The authenticated caller as seen by every protected route.
"""

from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class UserContext(BaseModel):
    """
    Authenticated user context derived from a verified bearer token.

    Campaign ownership checks compare against ``user_id``.
    """

    user_id: str = Field(
        ...,
        min_length=1,
        description="Identifier of the user issued by the auth provider (JWT 'sub').",
    )

    username: Optional[str] = Field(
        default=None,
        description="Display name, when the token carries one.",
    )

    model_config = ConfigDict(
        frozen=True,                # Makes UserContext immutable after creation
        extra="forbid",             # Prevents claim injection via unexpected fields
    )
