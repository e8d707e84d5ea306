from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, List, Optional

import pytz

from core.facets import Annotation, facets_to_json
from core.threads import ThreadRef

if TYPE_CHECKING:
    from atproto_client import models as atc_models

    from socials.bluesky_client import BlueskyClient

logger = logging.getLogger(__name__)

POST_COLLECTION = "app.bsky.feed.post"


def format_timestamp(dt: datetime) -> str:
    """RFC 3339 in UTC with millisecond precision, e.g. 2025-10-31T20:00:00.000Z"""
    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    return dt.astimezone(pytz.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class PostRecord:
    text: str
    created_at: datetime
    facets: List[Annotation] = field(default_factory=list)
    reply: Optional[ThreadRef] = None
    embed: Optional[dict] = None

    def to_dict(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "$type": POST_COLLECTION,
            "text": self.text,
            "createdAt": format_timestamp(self.created_at),
        }
        if self.facets:
            record["facets"] = facets_to_json(self.facets)
        if self.reply:
            record["reply"] = self.reply.to_dict()
        if self.embed:
            record["embed"] = self.embed
        return record


def build_post_record(
    text: str,
    facets: Optional[List[Annotation]] = None,
    reply: Optional[ThreadRef] = None,
    embed: Optional[dict] = None,
    created_at: Optional[datetime] = None,
) -> PostRecord:
    """Assemble a post; `created_at` overrides the default of "now"."""
    return PostRecord(
        text=text,
        created_at=created_at or datetime.now(pytz.utc),
        facets=list(facets or []),
        reply=reply,
        embed=embed,
    )


def submit_post(
    client: BlueskyClient,
    session: atc_models.ComAtprotoServerCreateSession.Response,
    record: PostRecord,
) -> dict[str, Any]:
    """Create the post in the logged-in account's repo and return the server's response."""
    payload = record.to_dict()
    logger.debug("Submitting record: %s", payload)
    result = client.create_record(session.did, POST_COLLECTION, payload, session.access_jwt)
    logger.info("Post created: %s", result.get("uri"))
    return result
