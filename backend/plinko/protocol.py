"""Wire models for the round API."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from plinko.config import settings


# === Request Models ===


class CommitRequest(BaseModel):
    """POST /rounds/commit optional body."""

    nonce: str | None = Field(default=None, description="Decimal nonce; generated if omitted")


class StartRequest(BaseModel):
    """POST /rounds/{id}/start request body."""

    clientSeed: str = Field(..., description="Player-chosen seed, any UTF-8 text")
    betCents: int = Field(..., strict=True, description="Stake in cents")
    dropColumn: int = Field(..., strict=True, description="Column 0-12 the ball is dropped above")


# === Response Models ===


class PathStepOut(BaseModel):
    """One step of the drop path."""

    row: int
    col: int
    direction: str  # "L" | "R"
    bias: float
    randValue: float


class CommitResponse(BaseModel):
    """POST /rounds/commit response."""

    protocolVersion: str = settings.protocol_version
    roundId: str
    commitHash: str
    nonce: str


class StartResponse(BaseModel):
    """POST /rounds/{id}/start response. The server seed stays private."""

    protocolVersion: str = settings.protocol_version
    roundId: str
    path: list[PathStepOut]
    binIndex: int
    payoutMultiplier: float
    winAmount: int
    pegMapHash: str


class RevealResponse(BaseModel):
    """POST /rounds/{id}/reveal response."""

    protocolVersion: str = settings.protocol_version
    roundId: str
    serverSeed: str
    revealedAt: datetime


class RoundResponse(BaseModel):
    """GET /rounds/{id} response; ``serverSeed`` is null until revealed."""

    protocolVersion: str = settings.protocol_version
    roundId: str
    status: str
    nonce: str
    commitHash: str
    serverSeed: str | None = None
    clientSeed: str | None = None
    combinedSeed: str | None = None
    dropColumn: int | None = None
    binIndex: int | None = None
    payoutMultiplier: float | None = None
    betCents: int | None = None
    winAmount: int | None = None
    pegMapHash: str | None = None
    path: list[PathStepOut] = Field(default_factory=list)
    createdAt: datetime
    completedAt: datetime | None = None
    revealedAt: datetime | None = None


class VerifyResponse(BaseModel):
    """GET /verify response."""

    protocolVersion: str = settings.protocol_version
    isVerified: bool
    commitHash: str
    combinedSeed: str
    binIndex: int
    pegMapHash: str
    payoutMultiplier: float
    path: list[PathStepOut]
    configHash: str
    mismatches: list[str] = Field(default_factory=list)
    message: str


def path_out(steps: list[Any]) -> list[PathStepOut]:
    """Convert engine path steps to wire steps."""
    return [PathStepOut(**step.to_wire()) for step in steps]
