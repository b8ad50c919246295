# =============================================================================
# core/models/user.py - User Schemas
# =============================================================================
# The user document is the identity anchor of the hierarchy. It is created
# on the first successful login and only holds profile display fields.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class User(BaseModel):
    """
    Stored user document.

    Example:
        {
            "uid": "8f14e45f-...",
            "email": "dana@example.com",
            "displayName": "Dana",
            "photoURL": null,
            "provider": "email",
            "emailVerified": false,
            "createdAt": "...",
            "lastLoginAt": "..."
        }
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    uid: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = Field(default=None, alias="photoURL")
    provider: str = "email"
    email_verified: bool = False
    created_at: str | None = None
    last_login_at: str | None = None
