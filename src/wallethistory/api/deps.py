from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from wallethistory.container import Container
from wallethistory.history.manager import SessionManager


@inject
async def get_manager(
    manager: SessionManager = Depends(Provide[Container.session_manager]),
) -> SessionManager:
    return manager
