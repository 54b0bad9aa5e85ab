"""Data models for the Server Registry."""

import hashlib
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


def server_id_for(api_url: str) -> str:
    """Derive the registry id of a server from its API URL.

    The id is the SHA-256 hex digest of the UTF-8 encoded URL, so the same URL
    always maps to the same id.
    """
    return hashlib.sha256(api_url.encode("utf-8")).hexdigest()


class ErrorCode(StrEnum):
    """Codes attached to field-level validation errors."""

    MISSING = "MISSING"
    INVALID = "INVALID"
    ALREADY_EXISTS = "ALREADY_EXISTS"


class FieldError(BaseModel):
    """A single validation error tied to a request field."""

    field: str = Field(..., description="Name of the offending request field")
    code: ErrorCode = Field(..., description="Machine readable error code")
    message: str = Field(..., description="Human readable description of the error")


class ErrorResponse(BaseModel):
    """Body returned for every non-2xx response."""

    message: str
    code: int
    errors: list[FieldError] = Field(default_factory=list)


class ServerRecord(BaseModel):
    """A registered GitHub Enterprise server.

    Records are immutable once created. The ``id`` is not stored; it is always
    recomputed from ``api_url``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., description="Display name, unique across the registry")
    api_url: str = Field(
        ...,
        alias="apiUrl",
        description="API root URL of the server, unique across the registry",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def id(self) -> str:
        """Stable identifier derived from the API URL."""
        return server_id_for(self.api_url)


class ServerCreateRequest(BaseModel):
    """Incoming payload for registering a server.

    Both fields are optional at the model level so that missing values can be
    reported as field errors instead of a generic schema failure.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = Field(default=None, description="Display name for the server")
    api_url: str | None = Field(
        default=None,
        alias="apiUrl",
        description="API root URL of the server",
    )

    @field_validator("name", "api_url")
    @classmethod
    def _blank_as_missing(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None
