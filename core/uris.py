from __future__ import annotations

from dataclasses import dataclass

from socials.errors import MalformedURIError

WEB_URL_PREFIX = "https://bsky.app/"

# bsky.app path segment -> record collection NSID
WEB_COLLECTIONS = {
    "post": "app.bsky.feed.post",
    "lists": "app.bsky.graph.list",
    "feed": "app.bsky.feed.generator",
}


@dataclass(frozen=True)
class RecordLocator:
    repository: str
    collection: str
    record_key: str


def parse_record_uri(uri: str) -> RecordLocator:
    """
    Split a record locator into (repository, collection, record key).

    Accepts either form:
      at://did:plc:abc/app.bsky.feed.post/xyz               -> positional segments
      https://bsky.app/profile/alice.bsky.social/post/xyz   -> "post" mapped to app.bsky.feed.post

    Unknown web path kinds are passed through unchanged.
    """
    parts = uri.split("/")
    if len(parts) < 5:
        raise MalformedURIError(f"Unhandled URI format: {uri}")

    if uri.startswith(WEB_URL_PREFIX):
        # ["https:", "", "bsky.app", "profile", <repo>, <kind>, <rkey>]
        path = parts[3:]
        if len(path) < 4:
            raise MalformedURIError(f"Unhandled URI format: {uri}")
        kind = path[2]
        return RecordLocator(path[1], WEB_COLLECTIONS.get(kind, kind), path[3])

    return RecordLocator(parts[2], parts[3], parts[4])
