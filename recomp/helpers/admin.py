from flask import current_app

def get_admin_usernames() -> set[str]:
    """
    ADMIN_USERNAMES is comma-separated, e.g. "jaron,coach".
    """
    raw = current_app.config.get("ADMIN_USERNAMES") or ""
    return {
        u.strip().lower()
        for u in raw.split(",")
        if u.strip()
    }

def is_admin_user(user) -> bool:
    """Return True if this user's username is configured as an admin."""
    if not user or not user.username:
        return False
    return user.username.strip().lower() in get_admin_usernames()

def sqlite_database_path(engine):
    """
    Filesystem path of a SQLite database, or None for anything else
    (Postgres, in-memory SQLite).
    """
    url = engine.url
    if url.get_backend_name() != "sqlite":
        return None
    if not url.database or url.database == ":memory:":
        return None
    return url.database
