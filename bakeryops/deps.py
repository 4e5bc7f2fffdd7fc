from __future__ import annotations

from fastapi import Depends, Request

from .db import Gateway, get_gateway
from .services.notifications import PendingOrderPoller, build_poller


def get_poller(request: Request, gateway: Gateway = Depends(get_gateway)) -> PendingOrderPoller:
    """The app's poller; created on first use when startup hooks did not run."""
    poller = getattr(request.app.state, "poller", None)
    if poller is None:
        poller = build_poller(gateway)
        request.app.state.poller = poller
    return poller
