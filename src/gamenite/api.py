from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from gamenite.actions import ActionResult, ServerActions
from gamenite.auth.google import STATE_COOKIE, GoogleOAuth, OAuthError, make_state, verify_state
from gamenite.auth.routing import route_redirect
from gamenite.auth.store import SESSION_COOKIE, AuthError, AuthStore, InvalidCredentials, User
from gamenite.bootstrap import build_actions, build_auth_store, build_google_oauth
from gamenite.config import Settings, get_settings
from gamenite.control.models import parse_timestamp
from gamenite.display import status_display
from gamenite.logging_config import get_logger, setup_logging

logger = get_logger(__name__)

_STATUS_CODES = {
    "UNAUTHORIZED": 401,
    "GAME_NOT_FOUND": 404,
    "NOT_FOUND": 404,
}


class CreateServerRequest(BaseModel):
    name: str
    config: dict[str, str] | None = None
    direct: bool = False


class Credentials(BaseModel):
    email: str
    password: str
    name: str = ""


def _unwrap(result: ActionResult):
    if result.success:
        return result.data
    status = _STATUS_CODES.get(result.error_kind or "", 400)
    raise HTTPException(status_code=status, detail=result.error)


def _with_status(server: dict) -> dict:
    display = status_display(
        server.get("deployment_status"),
        parse_timestamp(server.get("status_updated_at")),
    )
    return {**server, "status_label": display.label, "status_color": display.color}


def create_app(
    settings: Settings | None = None,
    actions: ServerActions | None = None,
    auth_store: AuthStore | None = None,
    google: GoogleOAuth | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_format, settings.log_level)

    app = FastAPI(title="Game Nite", version="0.1.0")
    actions = actions or build_actions(settings)
    auth_store = auth_store or build_auth_store(settings)
    google = google or build_google_oauth(settings)
    cookie_max_age = settings.session_ttl_hours * 3600

    @app.middleware("http")
    async def require_login(request: Request, call_next):
        user = await run_in_threadpool(auth_store.get_session_user, request.cookies.get(SESSION_COOKIE))
        request.state.user = user
        target = route_redirect(request.url.path, authenticated=user is not None)
        if target:
            return RedirectResponse(target, status_code=303)
        return await call_next(request)

    def current_user(request: Request) -> User | None:
        return getattr(request.state, "user", None)

    def _start_session(response, user: User):
        token = auth_store.create_session(user)
        response.set_cookie(
            SESSION_COOKIE, token, max_age=cookie_max_age,
            httponly=True, samesite="lax",
        )
        return response

    @app.get("/health")
    def health():
        return {"status": "ok"}

    # ── Auth ──

    @app.get("/login")
    def login_page():
        return {"page": "login", "google": google is not None}

    @app.get("/signup")
    def signup_page():
        return {"page": "signup", "google": google is not None}

    @app.post("/signup")
    def signup(creds: Credentials):
        try:
            user = auth_store.create_user(creds.email, creds.password, name=creds.name)
        except AuthError as e:
            raise HTTPException(status_code=400, detail=str(e))
        logger.info("user_signed_up", user_id=user.id)
        return _start_session(JSONResponse({"id": user.id, "email": user.email}), user)

    @app.post("/login")
    def login(creds: Credentials):
        try:
            user = auth_store.authenticate(creds.email, creds.password)
        except InvalidCredentials as e:
            raise HTTPException(status_code=401, detail=str(e))
        return _start_session(JSONResponse({"id": user.id, "email": user.email}), user)

    @app.post("/logout")
    def logout(request: Request):
        token = request.cookies.get(SESSION_COOKIE)
        if token:
            auth_store.revoke_session(token)
        response = JSONResponse({"status": "logged_out"})
        response.delete_cookie(SESSION_COOKIE)
        return response

    @app.get("/auth/google")
    def google_login():
        if google is None:
            raise HTTPException(status_code=404, detail="Google sign-in is not configured")
        state = make_state(settings.auth_secret)
        response = RedirectResponse(google.authorization_url(state), status_code=303)
        response.set_cookie(STATE_COOKIE, state, max_age=600, httponly=True, samesite="lax")
        return response

    @app.get("/auth/google/callback")
    def google_callback(request: Request, code: str = "", state: str = ""):
        if google is None:
            raise HTTPException(status_code=404, detail="Google sign-in is not configured")
        if not verify_state(settings.auth_secret, state, request.cookies.get(STATE_COOKIE)):
            raise HTTPException(status_code=400, detail="Invalid sign-in state")
        try:
            profile = google.fetch_profile(code)
        except OAuthError as e:
            raise HTTPException(status_code=400, detail=str(e))
        user = auth_store.get_or_create_oauth_user(profile["email"], profile["name"])
        response = RedirectResponse("/", status_code=303)
        response.delete_cookie(STATE_COOKIE)
        return _start_session(response, user)

    # ── Games and servers ──

    @app.get("/")
    def list_games(request: Request):
        return _unwrap(actions.list_games(current_user(request)))

    @app.get("/games/{game_id}")
    def get_game(game_id: str, request: Request):
        return _unwrap(actions.get_game(current_user(request), game_id))

    @app.get("/games/{game_id}/servers")
    def list_servers(game_id: str, request: Request):
        servers = _unwrap(actions.list_servers(current_user(request), game_id))
        return [_with_status(s) for s in servers]

    @app.post("/games/{game_id}/servers")
    def create_server(game_id: str, req: CreateServerRequest, request: Request):
        return _unwrap(actions.create_server(
            current_user(request), game_id, req.name,
            custom_env=req.config, direct=req.direct,
        ))

    @app.post("/servers/{server_id}/restart")
    def restart_server(server_id: str, request: Request):
        _unwrap(actions.restart_server(current_user(request), server_id))
        return {"status": "restarting", "id": server_id}

    @app.delete("/servers/{server_id}")
    def delete_server(server_id: str, request: Request):
        _unwrap(actions.delete_server(current_user(request), server_id))
        return {"status": "deleted", "id": server_id}

    @app.get("/workflows/{workflow_id}")
    def workflow_status(workflow_id: str, request: Request):
        return _unwrap(actions.get_workflow_status(current_user(request), workflow_id))

    @app.get("/share/{server_id}")
    def share(server_id: str):
        return _unwrap(actions.share_details(server_id))

    return app
