"""Access to app configuration from service code."""

from typing import Any

from flask import current_app, has_app_context


def get_setting(key: str, default: Any) -> Any:
    """Read an app config value, falling back to `default` outside an app context."""
    if not has_app_context():
        return default
    return current_app.config.get(key, default)
