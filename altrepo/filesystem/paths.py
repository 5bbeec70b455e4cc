"""Request path component validation."""

from __future__ import annotations


def is_valid_path_component(component: str) -> bool:
    """Return True if ``component`` is safe to join onto a directory path.

    Rejects empty names, hidden names, anything containing ``..`` and any
    path separator.
    """
    return (
        bool(component)
        and not component.startswith(".")
        and ".." not in component
        and "/" not in component
        and "\\" not in component
    )
