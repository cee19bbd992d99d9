"""
API routes for the KV Explorer console.

Read-only endpoints wrapping RetrievalFacade.get_all_pairs().
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from kvexplorer_core import RetrievalError, RetrievalErrorKind, RetrievalFacade

logger = logging.getLogger(__name__)

router = APIRouter(tags=["KV Explorer"])

_STATUS_BY_KIND = {
    RetrievalErrorKind.CONNECTION_FAILED: 503,
    RetrievalErrorKind.SCAN_FAILED: 502,
    RetrievalErrorKind.COMMIT_FAILED: 502,
}


# --- Response Models ---


class ValueView(BaseModel):
    """A classified key or value."""

    kind: str = Field(..., description="json, msgpack, text or bytes")
    badge: str = Field(..., description="Display label (Json, MsgPack, String, Bytes)")
    compact: str = Field(..., description="Single-line rendering")
    long: str = Field(..., description="Expanded rendering")
    data: Any = Field(None, description="Decoded payload; hex string for raw bytes")


class PairView(BaseModel):
    """A classified key/value pair."""

    key: ValueView
    value: ValueView


class PairsResponse(BaseModel):
    """Every pair of the store, in key order."""

    pairs: list[PairView]
    count: int


# --- Dependencies ---


def get_facade(request: Request) -> RetrievalFacade:
    """Get retrieval facade from app state."""
    return request.app.state.facade


# --- Routes ---


@router.get("/pairs", response_model=PairsResponse)
async def list_pairs(
    facade: RetrievalFacade = Depends(get_facade),
):
    """
    List every key/value pair.

    Each call reads a fresh snapshot of the whole keyspace. Keys and
    values are classified independently.
    """
    try:
        pairs = await facade.get_all_pairs()
    except RetrievalError as e:
        raise HTTPException(
            status_code=_STATUS_BY_KIND[e.kind],
            detail={"code": e.code, "message": e.description},
        )

    return PairsResponse(
        pairs=[PairView(**pair.to_dict()) for pair in pairs],
        count=len(pairs),
    )
