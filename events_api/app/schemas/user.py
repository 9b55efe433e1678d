"""
Pydantic models for user data.

``UserRead`` is the only shape in which a principal ever leaves the
API: it has no password field, so serialising a stored row through it
strips the digest.  ``UserInDB`` mirrors the full row and is used
inside the request pipeline.
"""

from pydantic import BaseModel, Field


class UserRead(BaseModel):
    """Schema for reading a user from the API."""

    id: int
    name: str = Field(..., examples=["Kari"])
    username: str = Field(..., examples=["KariK"])
    admin: bool = False

    model_config = {
        "from_attributes": True,
    }


class UserInDB(UserRead):
    """A stored principal, including its password digest."""

    password: str

    def public(self) -> UserRead:
        return UserRead.model_validate(self.model_dump(exclude={"password"}))
