"""Account record: dashboard login identity."""

from app.models.base import Record


class Account(Record):
    """
    Login identity for the admin dashboard.

    ``password`` holds whatever the caller stored; callers in this project
    store a bcrypt hash. ``is_admin`` gates every admin-only route.
    """

    password: str
    is_admin: bool = False
