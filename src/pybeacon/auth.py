"""Authorization capability for administrative reads.

The core never designs authentication; the transport injects an
:class:`Authorizer` and only ever asks it a yes/no question.
"""

from __future__ import annotations

import base64
import secrets
from typing import Protocol


class Authorizer(Protocol):
    """Opaque authorization gate."""

    def is_authorized(self, credentials: str | None) -> bool:
        ...


class BasicAuthorizer:
    """Accept exactly one ``user:password`` pair sent as an HTTP Basic ``Authorization`` header."""

    def __init__(self, user_pass: str) -> None:
        token = base64.b64encode(user_pass.encode("utf-8")).decode("ascii")
        self._expected = f"Basic {token}"

    def is_authorized(self, credentials: str | None) -> bool:
        if not credentials:
            return False
        return secrets.compare_digest(credentials.strip().encode("utf-8"), self._expected.encode("utf-8"))
