from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status

from wallethistory.api.deps import get_manager
from wallethistory.api.schemas.sessions import (
    BroadcastCreate,
    BroadcastResponse,
    HistoryResponse,
    PendingCreate,
    SessionCreate,
    SessionResponse,
)
from wallethistory.domain.enums import Chain
from wallethistory.history.manager import SessionManager
from wallethistory.history.session import WalletSession

router = APIRouter(prefix="/api/sessions", tags=["sessions"])

ManagerDep = Annotated[SessionManager, Depends(get_manager)]


def _session_response(session: WalletSession) -> SessionResponse:
    state = session.scheduler.state
    return SessionResponse(
        chain=session.chain,
        address=session.address,
        mode=state.mode,
        interval_seconds=state.interval_seconds,
        pending_hash=state.pending_hash,
        balance=session.balance,
    )


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def activate_session(body: SessionCreate, manager: ManagerDep) -> SessionResponse:
    """Make `address` the active wallet for its chain, replacing any previous one."""
    session = await manager.activate(body.chain, body.address)
    return _session_response(session)


@router.get("/{chain}", response_model=SessionResponse)
async def get_session_status(chain: Chain, manager: ManagerDep) -> SessionResponse:
    return _session_response(manager.get(chain))


@router.get("/{chain}/transactions", response_model=HistoryResponse)
async def get_transactions(
    chain: Chain,
    manager: ManagerDep,
    address: Optional[str] = Query(None, description="Defaults to the active address"),
) -> HistoryResponse:
    session = manager.get(chain)
    view = session.get_display_history(address or session.address)
    return HistoryResponse.model_validate(view)


@router.post("/{chain}/pending", response_model=SessionResponse, status_code=status.HTTP_202_ACCEPTED)
async def record_pending(chain: Chain, body: PendingCreate, manager: ManagerDep) -> SessionResponse:
    session = manager.get(chain)
    await session.on_submitted(
        body.address or session.address,
        body.hash,
        {"to": body.to, "amount": body.amount},
    )
    return _session_response(session)


@router.post("/{chain}/broadcast", response_model=BroadcastResponse, status_code=status.HTTP_202_ACCEPTED)
async def broadcast(chain: Chain, body: BroadcastCreate, manager: ManagerDep) -> BroadcastResponse:
    """Broadcast a signed payload and show it as pending straight away."""
    session = manager.get(chain)
    result = await session.submit(body.params, recipient=body.to, amount=body.amount)
    return BroadcastResponse(hash=result.hash)


@router.delete("/{chain}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(chain: Chain, manager: ManagerDep) -> None:
    await manager.deactivate(chain, forget=True)
