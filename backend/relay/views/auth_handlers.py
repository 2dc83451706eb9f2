"""Enrollment endpoints: sign-in form, credential issuance, and sign-out."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from starlette.responses import HTMLResponse, PlainTextResponse, RedirectResponse

from common.auth.credential import CREDENTIAL_TTL_SECONDS
from common.errors import StorageError, ValidationFailed
from relay.auth.backend import CREDENTIAL_COOKIE
from relay.auth.policy import SIGNIN_PATH

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from common.auth.service import IdentityService
    from common.auth.settings import IdentitySettings

logger = structlog.get_logger()

_SIGNIN_FORM = """\
<!doctype html>
<title>Sign in</title>
<form method="post" action="/submit">
  <input name="username" maxlength="30" required autofocus>
  <button type="submit">Sign in</button>
</form>
"""


async def signin_page(_request: Request) -> Response:
    """GET /signin - bare enrollment form."""
    return HTMLResponse(_SIGNIN_FORM)


async def submit(request: Request) -> Response:
    """POST /submit - find or create the user, set the credential cookie, redirect home."""
    identity: IdentityService = request.app.state.identity
    identity_settings: IdentitySettings = request.app.state.identity_settings
    form = await request.form()
    username = form.get("username", "")

    try:
        token = await identity.issue(str(username))
    except ValidationFailed as e:
        return PlainTextResponse(str(e), status_code=400)
    except StorageError:
        logger.exception("enrollment failed")
        return PlainTextResponse("Error occurred", status_code=500)

    response = RedirectResponse("/", status_code=303)
    response.set_cookie(
        key=CREDENTIAL_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        secure=identity_settings.cookie_secure,
        max_age=CREDENTIAL_TTL_SECONDS,
        path="/",
    )
    return response


async def logout(_request: Request) -> Response:
    """POST /logout - drop the credential cookie. The token itself stays valid until expiry."""
    response = RedirectResponse(SIGNIN_PATH, status_code=303)
    response.delete_cookie(key=CREDENTIAL_COOKIE, path="/")
    return response
