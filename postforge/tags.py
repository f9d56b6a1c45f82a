from __future__ import annotations

import re
from dataclasses import dataclass, field

INVALID_SLUG_CHARS_RE = re.compile(r"[^a-z0-9-]")


def slugify(text: str) -> str:
    text = text.lower().replace(" ", "-")
    return INVALID_SLUG_CHARS_RE.sub("", text)


@dataclass(frozen=True)
class TagMember:
    date: str
    title: str
    slug: str
    description_html: str


@dataclass
class TagRecord:
    slug: str
    display_name: str
    members: list[TagMember] = field(default_factory=list)


class TagIndex:
    """Tag membership gathered during one pass over the posts.

    The display name of a tag is the first raw spelling seen for its slug.
    """

    def __init__(self) -> None:
        self._records: dict[str, TagRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, tag_slug: object) -> bool:
        return tag_slug in self._records

    def record(self, raw: str, date: str, title: str, slug: str, description_html: str) -> str | None:
        display_name = raw.strip()
        if not display_name:
            return None
        tag_slug = slugify(display_name)
        if not tag_slug:
            return None
        record = self._records.get(tag_slug)
        if record is None:
            record = self._records[tag_slug] = TagRecord(tag_slug, display_name)
        elif any(member.slug == slug for member in record.members):
            # "Wawa, wawa" on one post is a single membership
            return tag_slug
        record.members.append(TagMember(date, title, slug, description_html))
        return tag_slug

    def tags_in_order(self) -> list[TagRecord]:
        ordered = []
        for tag_slug in sorted(self._records):
            record = self._records[tag_slug]
            # sorted() is stable, so same-day posts keep their corpus order
            members = sorted(record.members, key=lambda member: member.date, reverse=True)
            ordered.append(TagRecord(record.slug, record.display_name, members))
        return ordered
