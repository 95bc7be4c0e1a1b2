"""Pydantic models describing chain entries and signed envelopes."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .types import ExportRow, LookupRow

CURRENT_ENVELOPE_VERSION = "1.0.0"

StatusLiteral = Literal["OK", "ERROR"]
STATUS_OK: StatusLiteral = "OK"
STATUS_ERROR: StatusLiteral = "ERROR"


class ChainEntry(BaseModel):
    """Immutable record of one link in the chain.

    Records read from storage may use the export names (``prev``, ``hash``),
    the lookup names (``prevhash``, ``currhash``) or the column name ``data``
    for the contents; all of them validate into the same model.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    sequence: int = Field(
        ...,
        ge=1,
        validation_alias=AliasChoices("sequence", "id"),
        description="Position of the entry in the chain; sole ordering authority.",
    )
    contents: str = Field(
        ...,
        validation_alias=AliasChoices("contents", "data"),
        description="Opaque payload supplied by the original writer.",
    )
    prev_hash: str | None = Field(
        default=None,
        validation_alias=AliasChoices("prev_hash", "prevhash", "prev"),
        description="Hash of the preceding entry; ``None`` for the genesis entry.",
    )
    curr_hash: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("curr_hash", "currhash", "hash"),
        description="Hash binding this entry to its predecessor.",
    )
    summary_hash: str | None = Field(
        default=None,
        validation_alias=AliasChoices("summary_hash", "summaryhash", "summary"),
        description="Checkpoint hash, present only on some entries.",
    )
    created: str = Field(
        default="",
        validation_alias=AliasChoices("created", "created_at"),
        description="Append timestamp; informational only.",
    )
    public_key: str = Field(
        default="",
        validation_alias=AliasChoices("public_key", "publickey"),
        description="Key identifying the writer of ``contents``.",
    )
    signature: str = Field(
        default="",
        description="Writer signature over ``contents``.",
    )

    @field_validator("prev_hash", "summary_hash", mode="before")
    @classmethod
    def _empty_hash_is_absent(cls, value: object) -> object:
        if value == "":
            return None
        return value

    @field_validator("created", mode="before")
    @classmethod
    def _format_created(cls, value: object) -> object:
        if isinstance(value, datetime):
            return value.isoformat()
        if value is None:
            return ""
        return value

    def hashes(self) -> tuple[str, ...]:
        """Return every hash string that resolves to this entry."""

        if self.summary_hash is None:
            return (self.curr_hash,)
        return (self.curr_hash, self.summary_hash)

    def to_export_row(self) -> ExportRow:
        """Return the entry in the ``export`` wire shape."""

        return {
            "contents": self.contents,
            "prev": self.prev_hash,
            "hash": self.curr_hash,
            "summary": self.summary_hash,
            "created": self.created,
            "publickey": self.public_key,
            "signature": self.signature,
        }

    def to_lookup_row(self) -> LookupRow:
        """Return the entry in the ``hash``/``since`` wire shape."""

        return {
            "contents": self.contents,
            "prevhash": self.prev_hash,
            "currhash": self.curr_hash,
            "summaryhash": self.summary_hash,
            "created": self.created,
            "publickey": self.public_key,
            "signature": self.signature,
        }


class SignedEnvelope(BaseModel):
    """Versioned, timestamped wrapper placed around every query response."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    version: str = Field(
        default=CURRENT_ENVELOPE_VERSION,
        min_length=1,
        description="Protocol version of the envelope.",
    )
    datetime: str = Field(
        ...,
        description="ISO-8601 construction time of the envelope.",
    )
    status: StatusLiteral = Field(
        ...,
        description="``OK`` for successful queries, ``ERROR`` otherwise.",
    )
    results: object = Field(
        default=None,
        description="Query payload, or a human-readable message on error.",
    )

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    def model_dump_json_ready(self) -> dict[str, object]:
        """Return a JSON-serialisable mapping of the envelope."""

        return self.model_dump(mode="json")
