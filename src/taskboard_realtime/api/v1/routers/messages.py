from __future__ import annotations

from fastapi import APIRouter, Query

from taskboard_realtime.api.deps import CurrentPrincipal, HubDep, UoWDep
from taskboard_realtime.api.v1.schemas.message import MessageResponse, UnreadCountsResponse
from taskboard_realtime.config import settings
from taskboard_realtime.services import message_service

router = APIRouter(prefix="/api/v1/messages", tags=["messages"])


@router.get("", response_model=list[MessageResponse])
async def list_messages(
    principal: CurrentPrincipal,
    uow: UoWDep,
    limit: int = Query(settings.MESSAGE_HISTORY_LIMIT, ge=1, le=200),
) -> list[MessageResponse]:
    rows = await message_service.list_recent(limit, uow)
    return [
        MessageResponse.from_payload(
            message_service.message_payload(message, sender), principal.user_id,
        )
        for message, sender in rows
    ]


@router.get("/unread", response_model=UnreadCountsResponse)
async def unread_counts(principal: CurrentPrincipal, hub: HubDep) -> UnreadCountsResponse:
    counts = await hub.unread.counts_for(principal.user_id)
    return UnreadCountsResponse(counts=counts, total=sum(counts.values()))
