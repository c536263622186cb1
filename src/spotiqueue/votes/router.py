"""Vote API router."""

from typing import Optional

from fastapi import APIRouter, Cookie, Query

from spotiqueue.common.exceptions import SpotiQueueError
from spotiqueue.common.schemas import error_response
from spotiqueue.votes.schemas import VoteRequest, VoteResponse, VotesResponse

router = APIRouter(prefix="/queue")


def _get_service():
    from spotiqueue.deps import get_votes
    return get_votes()


def _get_config():
    from spotiqueue.deps import get_config_service
    return get_config_service()


def _get_db():
    from spotiqueue.deps import get_db
    return get_db()


@router.post("/vote", response_model=VoteResponse)
async def toggle_vote(
    body: VoteRequest,
    fingerprint_id: Optional[str] = Cookie(None),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            config = await _get_config().snapshot(session)
            voted, count = await svc.toggle(
                session, config, body.track_id, body.fingerprint_id or fingerprint_id or "",
            )
    except SpotiQueueError as e:
        return error_response(e)
    return VoteResponse(voted=voted, count=count)


@router.get("/votes", response_model=VotesResponse)
async def get_votes(
    fingerprint_id: Optional[str] = Query(None),
    fingerprint_cookie: Optional[str] = Cookie(None, alias="fingerprint_id"),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        votes = await svc.get_all(session)
        mine = await svc.get_mine(session, fingerprint_id or fingerprint_cookie or "")
        return VotesResponse(votes=votes, user_votes=mine)
