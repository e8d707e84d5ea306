# socials/errors.py
from __future__ import annotations


# 4xx statuses that say nothing about the input itself
NOT_DEFINITE_STATUSES = frozenset({401, 403, 408, 429})


class BlueskyError(Exception):
    """Base class for every failure that should abort the post."""


class TransportError(BlueskyError):
    """The request never produced a response (connection error, timeout, ...)."""


class BlueskyHTTPError(BlueskyError):
    """The PDS answered with a non-success status."""

    def __init__(self, method: str, status_code: int, reason: str = "", detail: str | None = None):
        self.method = method
        self.status_code = status_code
        self.reason = reason
        self.detail = detail

        msg = f"{method} returned {status_code} {reason}".rstrip()
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @property
    def is_definite_negative(self) -> bool:
        """A 4xx about the request itself, not about credentials or the call rate."""
        return self.is_client_error and self.status_code not in NOT_DEFINITE_STATUSES


class MalformedResponseError(BlueskyError):
    """A body (sent or received) that does not match the lexicon, or is not JSON."""


class MalformedURIError(BlueskyError, ValueError):
    """A record locator that cannot be split into repo / collection / rkey."""


class AttachmentError(BlueskyError):
    """An attachment could not be read from disk."""


class BlueskyBlobTooLarge(AttachmentError):
    """Raised when an image exceeds Bluesky's blob size limit."""
