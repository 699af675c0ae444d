"""Database URL resolution for Alembic.

Kept apart from env.py so it can be imported (and tested) without an
active alembic context.
"""

from __future__ import annotations

import os
import re
from urllib.parse import quote_plus, urlsplit, urlunsplit

# key=value or key='quoted value' (backslash escapes inside quotes)
_DSN_TOKEN = re.compile(r"(\w+)\s*=\s*(?:'((?:\\.|[^'\\])*)'|(\S*))")


def parse_libpq_dsn(dsn: str) -> dict[str, str]:
    """Parse a libpq key=value DSN into a dict."""
    tokens: dict[str, str] = {}
    for key, quoted, bare in _DSN_TOKEN.findall(dsn):
        if quoted:
            tokens[key] = re.sub(r"\\(.)", r"\1", quoted)
        else:
            tokens[key] = bare
    return tokens


def libpq_dsn_to_url(dsn: str) -> str:
    """Convert a libpq DSN to a SQLAlchemy psycopg2 URL.

    A socket path in host= becomes a ?host= query argument; DB_PASSWORD
    fills in a missing password.
    """
    tokens = parse_libpq_dsn(dsn)
    password = tokens.get("password") or os.environ.get("DB_PASSWORD", "")

    creds = f"{quote_plus(tokens.get('user', ''))}:{quote_plus(password)}"
    dbname = quote_plus(tokens.get("dbname", ""))
    host = tokens.get("host", "localhost")

    if host.startswith("/"):
        return f"postgresql+psycopg2://{creds}@/{dbname}?host={quote_plus(host)}"
    port = tokens.get("port", "5432")
    return f"postgresql+psycopg2://{creds}@{host}:{port}/{dbname}"


def _normalize_url(url: str) -> str:
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            url = "postgresql+psycopg2://" + url[len(prefix):]
            break

    db_password = os.environ.get("DB_PASSWORD", "")
    parts = urlsplit(url)
    if db_password and not parts.password:
        netloc = f"{quote_plus(parts.username or '')}:{quote_plus(db_password)}@{parts.hostname or ''}"
        if parts.port:
            netloc += f":{parts.port}"
        url = urlunsplit(parts._replace(netloc=netloc))
    return url


def get_database_url() -> str:
    """Resolve DATABASE_URL (URL or libpq DSN) for SQLAlchemy."""
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    if "://" in url:
        return _normalize_url(url)
    return libpq_dsn_to_url(url)
