from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from atproto_client.models.dot_dict import DotDict
from atproto_client.models.utils import get_model_as_dict
from pydantic import BaseModel

from core.uris import parse_record_uri
from socials.errors import MalformedResponseError

if TYPE_CHECKING:
    from atproto_client import models as atc_models

    from socials.bluesky_client import BlueskyClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrongRef:
    uri: str
    cid: str

    def to_dict(self) -> dict[str, str]:
        return {"uri": self.uri, "cid": self.cid}


@dataclass(frozen=True)
class ThreadRef:
    """Reply anchors for a new post: `root` starts the thread, `parent` is replied to."""

    root: StrongRef
    parent: StrongRef

    def to_dict(self) -> dict[str, dict[str, str]]:
        return {"root": self.root.to_dict(), "parent": self.parent.to_dict()}


def _strong_ref(record: atc_models.ComAtprotoRepoGetRecord.Response) -> StrongRef:
    if not record.cid:
        raise MalformedResponseError(f"Record {record.uri} came back without a cid")
    return StrongRef(record.uri, record.cid)


def _record_value(record: atc_models.ComAtprotoRepoGetRecord.Response) -> dict[str, Any]:
    # Known record types decode to models, anything else to a DotDict
    value = record.value
    if isinstance(value, (BaseModel, DotDict)):
        return get_model_as_dict(value)
    raise MalformedResponseError(f"Record {record.uri} has a non-object value")


def _field(obj: Any, key: str) -> Any:
    # Nested objects of a DotDict value are DotDicts themselves
    if isinstance(obj, dict):
        return obj.get(key)
    if isinstance(obj, DotDict):
        return obj[key]
    return None


def _root_uri(record: atc_models.ComAtprotoRepoGetRecord.Response) -> str | None:
    reply = _record_value(record).get("reply")
    if reply is None:
        return None

    uri = _field(_field(reply, "root"), "uri")
    if not isinstance(uri, str) or not uri:
        raise MalformedResponseError(f"Record {record.uri} has a reply field without a root uri")
    return uri


def resolve_thread(client: BlueskyClient, parent_uri: str) -> ThreadRef:
    """
    Build the reply refs for replying to `parent_uri` (at:// URI or bsky.app URL).

    The parent record is fetched for its CID. If the parent is itself a reply,
    its root is fetched as well so the new post lands in the same thread;
    otherwise the parent is its own root.
    """
    parent = client.get_record(parse_record_uri(parent_uri))
    parent_ref = _strong_ref(parent)

    root_uri = _root_uri(parent)
    if root_uri is None:
        logger.info("Replying to top-level post %s", parent.uri)
        return ThreadRef(root=parent_ref, parent=parent_ref)

    root = client.get_record(parse_record_uri(root_uri))
    logger.info("Replying to %s in thread rooted at %s", parent.uri, root.uri)
    return ThreadRef(root=_strong_ref(root), parent=parent_ref)
