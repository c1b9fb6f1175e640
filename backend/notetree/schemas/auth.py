"""Identity carried by a verified session token."""

from pydantic import BaseModel


class TokenIdentity(BaseModel):
    """Who the caller is, as proven by their bearer token."""

    user_id: int
    username: str

    model_config = {"frozen": True}
