"""Named database URLs; the URL scheme selects the SQL dialect."""

import urllib.parse

from .dialects import Dialect, get_dialect_for_scheme

_urls: dict[str, str] = {}


def connect(database_url: str, name: str = "default") -> None:
    """Register ``database_url`` under ``name`` (e.g. ``"sqlite:///app.db"``)."""
    _urls[name] = database_url


def disconnect(name: str | None = None) -> None:
    """Forget one named URL, or all of them."""
    if name is None:
        _urls.clear()
    else:
        _urls.pop(name, None)


def get_url(name: str = "default") -> str:
    try:
        return _urls[name]
    except KeyError as error:
        raise ValueError(f"No connection configured with name=`{name}`") from error


def get_dialect(name: str = "default", **options) -> Dialect:
    """Dialect for the named connection's URL scheme.

    Raises:
        ValueError: if no such connection was configured, or its scheme is unsupported.
    """
    scheme = urllib.parse.urlparse(get_url(name)).scheme
    return get_dialect_for_scheme(scheme, **options)
