"""
aiohttp views for client credentials.

Routes (relative to ``API_PREFIX``):
    GET    /clients/{record_id}/accesses                        list (masked)
    POST   /clients/{record_id}/accesses                        create
    GET    /clients/{record_id}/accesses/{access_id}            read (masked)
    PUT    /clients/{record_id}/accesses/{access_id}            update
    DELETE /clients/{record_id}/accesses/{access_id}            delete
    POST   /clients/{record_id}/accesses/{access_id}/password   reveal

The principal is read from the session the session provider attached to
the request; a request without one is rejected with 401.
"""
import logging
from functools import wraps
from typing import Any, Optional

import orjson
from aiohttp import web
from pydantic import ValidationError

from .conf import API_PREFIX, SESSION_KEY, SESSION_USER_KEY
from .exceptions import ErrorKind, VaultError
from .vault import CredentialCreate, CredentialUpdate, CredentialVault

logger = logging.getLogger("access.vault")

VAULT_KEY = web.AppKey("access_vault", CredentialVault)

_STATUS = {
    ErrorKind.NOT_AUTHENTICATED: 401,
    ErrorKind.NOT_FOUND: 404,
}


def _dumps(obj: Any) -> str:
    return orjson.dumps(obj).decode("utf-8")


def json_response(data: Any, status: int = 200) -> web.Response:
    return web.json_response(data, status=status, dumps=_dumps)


def get_principal(request: web.Request) -> Optional[str]:
    """Principal id of the current session, or None."""
    session = request.get(SESSION_KEY)
    if not session:
        return None
    user = session.get(SESSION_USER_KEY)
    return str(user) if user is not None else None


async def _read_body(request: web.Request) -> Any:
    try:
        return await request.json(loads=orjson.loads)
    except ValueError:
        raise web.HTTPBadRequest(
            text=_dumps({"error": "Invalid JSON body"}),
            content_type="application/json",
        ) from None


def vault_view(handler):
    """Translate vault and validation errors into JSON responses."""
    @wraps(handler)
    async def _wrap(request: web.Request) -> web.Response:
        try:
            return await handler(request)
        except ValidationError as err:
            errors = [
                {"loc": list(e["loc"]), "msg": e["msg"]} for e in err.errors()
            ]
            return json_response({"error": errors}, status=400)
        except VaultError as err:
            status = _STATUS.get(err.kind, 500)
            if status == 500:
                logger.error(
                    "Access request %s %s failed: %s",
                    request.method, request.path, err.kind.value,
                )
                # server-side failures never expose their detail
                return json_response({"error": type(err).default_message}, status=500)
            return json_response({"error": err.message}, status=status)
    return _wrap


@vault_view
async def list_accesses(request: web.Request) -> web.Response:
    vault = request.app[VAULT_KEY]
    views = await vault.list(request.match_info["record_id"], get_principal(request))
    return json_response([view.to_json() for view in views])


@vault_view
async def create_access(request: web.Request) -> web.Response:
    vault = request.app[VAULT_KEY]
    principal = get_principal(request)
    if not principal:
        return json_response({"error": "Authentication required"}, status=401)
    payload = CredentialCreate.model_validate(await _read_body(request))
    view = await vault.create(request.match_info["record_id"], principal, payload)
    return json_response(view.to_json(), status=201)


@vault_view
async def get_access(request: web.Request) -> web.Response:
    vault = request.app[VAULT_KEY]
    view = await vault.get(
        request.match_info["access_id"],
        get_principal(request),
        record_id=request.match_info["record_id"],
    )
    return json_response(view.to_json())


@vault_view
async def update_access(request: web.Request) -> web.Response:
    vault = request.app[VAULT_KEY]
    principal = get_principal(request)
    if not principal:
        return json_response({"error": "Authentication required"}, status=401)
    payload = CredentialUpdate.model_validate(await _read_body(request))
    view = await vault.update(
        request.match_info["access_id"],
        principal,
        payload,
        record_id=request.match_info["record_id"],
    )
    return json_response(view.to_json())


@vault_view
async def delete_access(request: web.Request) -> web.Response:
    vault = request.app[VAULT_KEY]
    await vault.delete(
        request.match_info["access_id"],
        get_principal(request),
        record_id=request.match_info["record_id"],
    )
    return json_response({"message": "Access deleted"})


@vault_view
async def reveal_password(request: web.Request) -> web.Response:
    vault = request.app[VAULT_KEY]
    revealed = await vault.reveal(
        request.match_info["access_id"],
        get_principal(request),
        record_id=request.match_info["record_id"],
    )
    return json_response(revealed.to_json())


def setup_routes(
    app: web.Application,
    vault: CredentialVault,
    prefix: str = API_PREFIX,
) -> None:
    """Register the credential routes and bind the vault to the app."""
    app[VAULT_KEY] = vault
    base = f"{prefix.rstrip('/')}/clients/{{record_id}}/accesses"
    app.router.add_get(base, list_accesses)
    app.router.add_post(base, create_access)
    app.router.add_get(f"{base}/{{access_id}}", get_access)
    app.router.add_put(f"{base}/{{access_id}}", update_access)
    app.router.add_delete(f"{base}/{{access_id}}", delete_access)
    app.router.add_post(f"{base}/{{access_id}}/password", reveal_password)


def create_app(vault: CredentialVault, middlewares=()) -> web.Application:
    app = web.Application(middlewares=list(middlewares))
    setup_routes(app, vault)
    return app
