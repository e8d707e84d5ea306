"""Rich-text facet detection for post text.

Bluesky facets index into the UTF-8 encoding of the text, not into Python
characters, so both patterns run over the encoded bytes and every offset
reported here is a byte offset.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

MENTION_FEATURE = "app.bsky.richtext.facet#mention"
LINK_FEATURE = "app.bsky.richtext.facet#link"

# Byte patterns: \w and \s are ASCII-only here, matching the server's notion of a handle.
_MENTION_PATTERN = re.compile(rb"\B@([\w.-]+)")
_URL_PATTERN = re.compile(rb"https?://[^\s]+")


@dataclass(frozen=True)
class Mention:
    start: int
    end: int
    handle: str


@dataclass(frozen=True)
class LinkSpan:
    start: int
    end: int
    url: str


@dataclass(frozen=True)
class Annotation:
    """
    A facet over [byte_start, byte_end) of the UTF-8 text.

    kind:  "mention" | "link"
    value: the DID for a mention, the URL for a link
    """

    byte_start: int
    byte_end: int
    kind: str
    value: str

    def to_facet(self) -> dict:
        if self.kind == "mention":
            feature = {"$type": MENTION_FEATURE, "did": self.value}
        else:
            feature = {"$type": LINK_FEATURE, "uri": self.value}

        return {
            "index": {"byteStart": self.byte_start, "byteEnd": self.byte_end},
            "features": [feature],
        }


def parse_mentions(text: str) -> List[Mention]:
    data = text.encode("utf-8")
    return [
        Mention(start=m.start(), end=m.end(), handle=m.group(1).decode("utf-8"))
        for m in _MENTION_PATTERN.finditer(data)
    ]


def parse_urls(text: str) -> List[LinkSpan]:
    data = text.encode("utf-8")
    return [
        LinkSpan(start=m.start(), end=m.end(), url=m.group().decode("utf-8"))
        for m in _URL_PATTERN.finditer(data)
    ]


def annotate(text: str, resolve_handle: Callable[[str], Optional[str]]) -> List[Annotation]:
    """
    Build facets for `text`: every resolvable mention first, then every link.

    `resolve_handle` maps a handle to a DID, or returns None when the handle
    doesn't resolve; such mentions are left as plain text. Anything it raises
    propagates.
    """
    annotations: List[Annotation] = []

    for mention in parse_mentions(text):
        did = resolve_handle(mention.handle)
        if did is None:
            continue
        annotations.append(Annotation(mention.start, mention.end, "mention", did))

    for link in parse_urls(text):
        annotations.append(Annotation(link.start, link.end, "link", link.url))

    logger.debug("Facets for text: %s", annotations)
    return annotations


def facets_to_json(annotations: List[Annotation]) -> List[dict]:
    return [a.to_facet() for a in annotations]
