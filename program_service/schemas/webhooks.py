from typing import Any

from pydantic import BaseModel


class ClerkUserFields(BaseModel):
    """User attributes forwarded from a Clerk ``user.*`` event."""

    clerk_id: str
    email: str
    name: str
    image: str | None = None

    @classmethod
    def from_event_data(cls, data: dict[str, Any]) -> "ClerkUserFields":
        email = data["email_addresses"][0]["email_address"]
        name = f"{data.get('first_name') or ''} {data.get('last_name') or ''}".strip()
        return cls(
            clerk_id=data["id"],
            email=email,
            name=name,
            image=data.get("image_url"),
        )
