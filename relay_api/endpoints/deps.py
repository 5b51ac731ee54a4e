from __future__ import annotations

from fastapi import Request

from ..services import RelayServices


def get_services(request: Request) -> RelayServices:
    return request.app.state.services
