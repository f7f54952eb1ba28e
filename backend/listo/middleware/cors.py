from __future__ import annotations


def build_allowed_origins(*, frontend_base_url: str, frontend_urls: str | None) -> list[str]:
    allowed: set[str] = {
        "http://localhost:3000",
        "http://localhost:5173",
    }

    if frontend_base_url:
        allowed.add(frontend_base_url.rstrip("/"))

    for origin in [s.strip().rstrip("/") for s in str(frontend_urls or "").split(",") if s.strip()]:
        allowed.add(origin)

    return sorted(allowed)


def build_allowed_origin_regex() -> str:
    """
    Any listo.app subdomain (web client previews included). Matches the
    registrable domain only, not suffixes like "evillisto.app"; a port is
    permitted for dev setups.
    """
    return r"^https?://([a-z0-9-]+\.)*listo\.app(:\d+)?$"
