"""Base exception for business rule violations.

Services raise subclasses of :class:`DomainError`; the API exception
handler turns them into responses using ``status_code`` and ``code``.
"""

from __future__ import annotations


class DomainError(Exception):
    status_code = 400
    code = "domain_error"

    def __init__(self, message: str = "", *, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def __str__(self) -> str:
        return self.message
