"""Team domain schemas - organizations and memberships"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_slug
from ...tenancy import ROLES
from ...utils.sanitization import clean_text


def _validate_role(v: str) -> str:
    v = v.strip().upper()
    if v not in ROLES:
        raise ValueError(f"Invalid role. Must be one of: {', '.join(ROLES)}")
    return v


class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=100)
    industry: Optional[str] = Field(None, max_length=100)
    timezone: str = "America/Toronto"
    # Defaults to the creating super admin
    owner_email: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        cleaned = clean_text(v, max_length=255)
        if not cleaned:
            raise ValueError("Organization name is required")
        return cleaned

    @field_validator("slug")
    @classmethod
    def validate_org_slug(cls, v):
        return validate_slug(v) if v else v

    @field_validator("owner_email")
    @classmethod
    def validate_owner_email(cls, v):
        return validate_email(v)


class OrganizationResponse(BaseModel):
    id: int
    public_id: str
    name: str
    slug: str
    industry: Optional[str]
    timezone: Optional[str]
    role: Optional[str]


class MemberInvite(BaseModel):
    email: str
    full_name: Optional[str] = Field(None, max_length=255)
    role: str = "MEMBER"

    @field_validator("email")
    @classmethod
    def validate_member_email(cls, v):
        return validate_email(v)

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        return clean_text(v, max_length=255)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        return _validate_role(v)


class MemberRoleUpdate(BaseModel):
    role: str

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        return _validate_role(v)


class MemberResponse(BaseModel):
    membership_id: int
    user_id: int
    email: str
    full_name: Optional[str]
    role: str
    # True until the invited user signs in for the first time
    pending: bool
    created_at: Optional[datetime]
