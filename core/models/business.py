# =============================================================================
# core/models/business.py - Business Schemas
# =============================================================================
# A business groups the products of one user and carries the branding and
# tone-of-voice context the advertisement workflow reads. None of the
# descriptive fields are interpreted by the server.
# =============================================================================

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Address(_Camel):
    street: str | None = None
    city: str | None = None
    postal_code: str | None = None
    country: str | None = None


class Owner(_Camel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class BusinessPersona(_Camel):
    type: str | None = None
    name: str | None = None
    gender: str | None = None


class BusinessInfo(_Camel):
    """
    Descriptive business fields, all optional.

    Used as the body of business updates and as `businessInfo` in product
    imports. Unknown keys are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    slogan: str | None = None
    description: str | None = None
    logo_url: str | None = None

    # Address & contact
    address: Address | None = None
    contact_phone: str | None = None
    business_email: str | None = None
    website_url: str | None = None

    # Owner info (synced from user but editable)
    owner: Owner | None = None

    # Branding
    brand_colors: list[str] | None = None
    preferred_style: str | None = None
    visual_style: str | None = None

    # AI context
    business_type: str | None = None
    category: str | None = None
    business_goal: str | None = None
    tone_of_voice: str | None = None
    business_persona: BusinessPersona | None = None
    target_audience: str | None = None
    selling_platforms: list[str] | None = None
    location: str | None = None
    languages: list[str] | None = None

    # Socials
    instagram: str | None = None
    facebook: str | None = None
    tiktok: str | None = None

    def to_patch(self) -> dict[str, Any]:
        """Fields that were actually provided, as camelCase JSON."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class BusinessCreate(BusinessInfo):
    """Body of POST /businesses. Only `name` is required."""

    name: str = Field(..., min_length=1, max_length=200)


class Business(_Camel):
    """
    Stored business document, with the defaults every new business gets.

    Example:
        {
            "businessId": "biz-1",
            "name": "Dana's Business",
            "preferredStyle": "realistic",
            "languages": ["hebrew"],
            ...
        }
    """

    business_id: str
    name: str | None = None
    slogan: str | None = None
    description: str | None = None
    logo_url: str | None = None

    address: Address = Field(default_factory=Address)
    contact_phone: str | None = None
    business_email: str | None = None
    website_url: str | None = None

    owner: Owner = Field(default_factory=Owner)

    brand_colors: list[str] = Field(default_factory=list)
    preferred_style: str = "realistic"
    visual_style: str | None = None

    business_type: str | None = None
    category: str | None = None
    business_goal: str | None = None
    tone_of_voice: str | None = None
    business_persona: BusinessPersona = Field(default_factory=BusinessPersona)
    target_audience: str | None = None
    selling_platforms: list[str] = Field(default_factory=list)
    location: str | None = None
    languages: list[str] = Field(default_factory=lambda: ["hebrew"])

    instagram: str | None = None
    facebook: str | None = None
    tiktok: str | None = None

    created_at: str | None = None
    updated_at: str | None = None
