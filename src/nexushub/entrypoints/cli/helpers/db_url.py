"""Render database URLs safely for terminal output."""

from sqlalchemy.engine import make_url


def sanitize_url(url: str) -> str:
    """Return `url` with its password (if any) replaced by ``***``.

    Secrets embedded in query parameters are left as is.
    """
    return make_url(url).render_as_string(hide_password=True)
