"""Family member domain model."""

from pydantic import BaseModel, Field


class Member(BaseModel):
    """Family member snapshot attached to resolved tasks and overrides."""

    id: str = Field(..., description="Unique member ID")
    family_id: str | None = Field(default=None, description="Family the member belongs to")
    first_name: str = Field(..., description="First name")
    last_name: str = Field(default="", description="Last name")
    email: str | None = Field(default=None, description="Email address")
    avatar_url: str | None = Field(default=None, description="Avatar image URL")
    is_virtual: bool = Field(default=False, description="Virtual members have no login (e.g., young kids)")

    @property
    def display_name(self) -> str:
        """Full name used in notifications."""
        return f"{self.first_name} {self.last_name}".strip()
