from urllib.parse import urlencode

LOGIN_PATH = "/login"
AUTH_PAGES = ("/login", "/signup")
PUBLIC_PREFIXES = ("/login", "/signup", "/auth/", "/share/", "/health")


def is_public(path: str) -> bool:
    return any(path == p.rstrip("/") or path.startswith(p) for p in PUBLIC_PREFIXES)


def is_auth_page(path: str) -> bool:
    return any(path.startswith(p) for p in AUTH_PAGES)


def route_redirect(path: str, authenticated: bool) -> str | None:
    """Where to send a request instead of serving it, or None to serve it.

    Signed-in users are bounced off the login/signup pages to the home page;
    anonymous users on protected routes go to login with ``from`` set.
    """
    if authenticated and is_auth_page(path):
        return "/"
    if not authenticated and not is_public(path):
        return f"{LOGIN_PATH}?{urlencode({'from': path})}"
    return None
