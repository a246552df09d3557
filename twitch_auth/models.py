"""Pydantic models for Twitch resources."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class UserProfile(BaseModel):
    """A user as returned by the Helix ``/users`` resource.

    Fields beyond the four declared here (``login``, ``type``,
    ``created_at``, ...) are kept as extras so that ``model_dump()``
    reproduces the provider's element verbatim. Helix sends ``id`` as a
    numeric string; it is kept as given rather than coerced.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    id: int | str
    display_name: str = ""
    email: str = ""
    profile_image_url: str = ""
