"""Page endpoints serving the view data contract as JSON."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from starlette.responses import JSONResponse, PlainTextResponse

from common.errors import NotFound, StorageError
from relay.views.page_data import build_page_data

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

logger = structlog.get_logger()


async def home_page(request: Request) -> Response:
    """GET / - directory and contacts for the signed-in user."""
    return await _render(request, None)


async def chat_page(request: Request) -> Response:
    """GET /chat/{user_id} - same as home, plus the thread with one user."""
    return await _render(request, request.path_params["user_id"])


async def _render(request: Request, selected_user_id: str | None) -> Response:
    state = request.app.state
    try:
        data = await build_page_data(state.store, state.contacts, request.user.username, selected_user_id)
    except NotFound:
        return PlainTextResponse("User not found", status_code=404)
    except StorageError:
        logger.exception("failed to build page data", username=request.user.username)
        return PlainTextResponse("Server Error", status_code=500)
    return JSONResponse(data.to_wire())


async def health(_request: Request) -> Response:
    return JSONResponse({"status": "ok"})
