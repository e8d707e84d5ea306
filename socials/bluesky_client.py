# socials/bluesky_client.py
# pylint: disable=wrong-import-position

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Callable, TypeVar

import httpx

# Silence noisy Pydantic v2 + atproto_client schema warnings
from pydantic.warnings import UnsupportedFieldAttributeWarning

warnings.filterwarnings("ignore", category=UnsupportedFieldAttributeWarning)

from atproto import Client
from atproto_client import exceptions as atc_exceptions
from atproto_client import models as atc_models
from atproto_client.models.utils import get_model_as_dict
from atproto_client.request import Request

from core.uris import RecordLocator
from socials.errors import BlueskyHTTPError, MalformedResponseError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_PDS_URL = "https://bsky.social"
USER_AGENT = "create-bsky-post/1.0 (+https://bsky.app)"

_T = TypeVar("_T")


@dataclass
class BlueskyConfig:
    pds_url: str = DEFAULT_PDS_URL
    timeout: float | None = None  # None -> no deadline on the HTTP client


def _http_error(method: str, e: atc_exceptions.RequestErrorBase) -> BlueskyHTTPError:
    status = e.response.status_code
    try:
        reason = HTTPStatus(status).phrase
    except ValueError:
        reason = ""

    # XRPC errors carry {"error": "...", "message": "..."} when the server is well-behaved;
    # the SDK hands them over as XrpcError, DotDict or raw bytes.
    content = e.response.content
    error = getattr(content, "error", None)
    message = getattr(content, "message", None)
    detail = f"{error}: {message}" if error and message else (message or error)

    return BlueskyHTTPError(method, status, reason, detail)


class BlueskyClient:
    """
    Explicit per-endpoint wrapper around an atproto Client.

    Every call is a single request: no retries, no caching, no stored session
    on the SDK client. Authenticated calls take the access token explicitly.
    SDK failures are translated into socials.errors types.

      - create_session():  com.atproto.server.createSession
      - resolve_handle():  com.atproto.identity.resolveHandle (soft-fails on a definite 4xx)
      - get_record():      com.atproto.repo.getRecord
      - upload_blob():     com.atproto.repo.uploadBlob
      - create_record():   com.atproto.repo.createRecord
    """

    def __init__(self, cfg: BlueskyConfig | None = None, request: Request | None = None):
        self.cfg = cfg or BlueskyConfig()
        if request is None:
            request = Request(timeout=self.cfg.timeout)
        request.add_additional_header("User-Agent", USER_AGENT)

        self.client = Client(base_url=self.cfg.pds_url, request=request)

    # ---------------- Low-level helpers ----------------

    def _call(self, method: str, fn: Callable[..., _T], *args: Any, **kwargs: Any) -> _T:
        logger.debug("XRPC %s", method)
        try:
            return fn(*args, **kwargs)
        except atc_exceptions.RequestErrorBase as e:
            if e.response is None:
                # Transport failure: the SDK chains the underlying httpx exception
                cause = e.__cause__ or e
                raise TransportError(f"{method} request failed: {type(cause).__name__}: {cause}") from e
            raise _http_error(method, e) from e
        except httpx.HTTPError as e:
            raise TransportError(f"{method} request failed: {type(e).__name__}: {e}") from e
        except (atc_exceptions.ModelError, ValueError) as e:
            raise MalformedResponseError(f"{method} does not match its lexicon: {e}") from e

    @staticmethod
    def _auth(access_token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}

    # ---------------- Public API ----------------

    def create_session(self, identifier: str, password: str) -> atc_models.ComAtprotoServerCreateSession.Response:
        method = "com.atproto.server.createSession"
        session = self._call(
            method,
            self.client.com.atproto.server.create_session,
            {"identifier": identifier, "password": password},
        )
        logger.info("Logged in as %s (%s)", identifier, session.did)
        return session

    def resolve_handle(self, handle: str) -> str | None:
        """
        Resolve a handle (no leading '@') to a DID.

        Returns None when the PDS answers with a client error about the handle
        itself (e.g. 400 "Unable to resolve handle"), i.e. the handle
        authoritatively does not resolve. 401/403/408/429, 5xx, transport
        failures and bodies without a DID raise.
        """
        method = "com.atproto.identity.resolveHandle"
        try:
            resolved = self._call(method, self.client.com.atproto.identity.resolve_handle, {"handle": handle})
        except BlueskyHTTPError as e:
            if e.is_definite_negative:
                logger.warning("Handle @%s did not resolve (%s); leaving it as plain text.", handle, e)
                return None
            raise

        return resolved.did

    def get_record(self, locator: RecordLocator) -> atc_models.ComAtprotoRepoGetRecord.Response:
        method = "com.atproto.repo.getRecord"
        return self._call(
            method,
            self.client.com.atproto.repo.get_record,
            {
                "repo": locator.repository,
                "collection": locator.collection,
                "rkey": locator.record_key,
            },
        )

    def upload_blob(self, data: bytes, content_type: str, access_token: str) -> dict[str, Any]:
        """Upload raw bytes and return the blob ref as a JSON-ready dict for embedding."""
        method = "com.atproto.repo.uploadBlob"
        headers = {"Content-Type": content_type, **self._auth(access_token)}
        uploaded = self._call(method, self.client.com.atproto.repo.upload_blob, data, headers=headers)
        logger.info("Uploaded blob (%d bytes, %s)", len(data), content_type)
        return get_model_as_dict(uploaded.blob)

    def create_record(
        self, repo: str, collection: str, record: dict[str, Any], access_token: str
    ) -> dict[str, Any]:
        """Create a record and return the decoded response (uri, cid, ...) as a dict."""
        method = "com.atproto.repo.createRecord"
        created = self._call(
            method,
            self.client.com.atproto.repo.create_record,
            {"repo": repo, "collection": collection, "record": record},
            headers=self._auth(access_token),
        )
        return get_model_as_dict(created)

    def close(self) -> None:
        self.client.request.close()
