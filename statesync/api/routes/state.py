"""
State Synchronisation Endpoints.

Each account owns one opaque state document. Clients load it and overwrite
it wholesale; the last write wins.
"""
import logging
from typing import Dict

from fastapi import APIRouter, Depends

from ..models import SyncStateRequest, StateResponse, MessageResponse, ErrorResponse
from ..deps import get_current_account, get_state_store
from ...database.state_db import StateStore
from ...errors import ValidationError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["State"])


@router.get(
    "/load-state",
    response_model=StateResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Authentication required"},
        404: {"model": ErrorResponse, "description": "No state synced yet"},
    },
)
def load_state(
    account: Dict = Depends(get_current_account),
    store: StateStore = Depends(get_state_store),
):
    """
    Return the last synced state for the current account.
    """
    state, last_updated = store.load_document(account["correlation_id"])
    return StateResponse(state=state, last_updated=last_updated)


@router.post(
    "/sync-state",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "State data missing"},
        401: {"model": ErrorResponse, "description": "Authentication required"},
    },
)
def sync_state(
    request: SyncStateRequest,
    account: Dict = Depends(get_current_account),
    store: StateStore = Depends(get_state_store),
):
    """
    Replace the current account's state with the submitted value.
    """
    if request.state is None:
        raise ValidationError("State data is required")

    store.sync(account["correlation_id"], request.state)
    logger.info(f"State synchronized for user {account['user_id']}")
    return MessageResponse(message="State synchronized successfully")
