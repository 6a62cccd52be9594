"""Apply resolved page metadata to a document head.

Writes the title, named meta tags, robots rule, canonical link, Open Graph,
Twitter and Facebook tags, favicon links and the JSON-LD structured data
script through a TagSink.

Upserts are diff-only: an element is created when absent and otherwise only
touched when its value differs, so applying the same metadata twice performs
zero writes the second time. Later applies for the same page view supersede
earlier ones field by field.

Features:
- TagSink interface keeps the applier independent of any real DOM
- HeadDocument in-memory sink with a write counter and HTML rendering
- Favicon links kept in sync across rels with duplicates pruned
- Icon MIME type inferred from extension or data URI prefix
- A single script#schema-json-ld element, rewritten only when its JSON changes
"""

import html
import json
import posixpath
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import urlsplit

from app.core.logging import get_logger
from app.services.metadata_resolution import ResolvedMetadata

logger = get_logger(__name__)

ROBOTS_NOINDEX = "noindex, nofollow"
ROBOTS_INDEX = "index, follow"
TWITTER_CARD = "summary_large_image"

FAVICON_RELS = ("icon", "shortcut icon", "apple-touch-icon")

SCHEMA_SCRIPT_ID = "schema-json-ld"
JSON_LD_TYPE = "application/ld+json"

ICON_TYPES_BY_EXTENSION: dict[str, str] = {
    ".svg": "image/svg+xml",
    ".png": "image/png",
    ".ico": "image/x-icon",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


@dataclass(frozen=True)
class Selector:
    """Attribute selector such as meta[name="description"]."""

    tag: str
    attribute: str
    value: str

    def __str__(self) -> str:
        return f'{self.tag}[{self.attribute}="{self.value}"]'


def meta_name(name: str) -> Selector:
    return Selector("meta", "name", name)


def meta_property(name: str) -> Selector:
    return Selector("meta", "property", name)


def link_rel(rel: str) -> Selector:
    return Selector("link", "rel", rel)


def script_id(element_id: str) -> Selector:
    return Selector("script", "id", element_id)


def serialize_json_ld(data: dict[str, Any]) -> str:
    """Stable JSON text for a structured data object."""
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


class TagSink(Protocol):
    """Mutable head region addressed by attribute selectors."""

    @property
    def title(self) -> str: ...

    def set_title(self, title: str) -> None: ...

    def get(self, selector: Selector) -> dict[str, str] | None:
        """Attributes of the first matching element, or None."""
        ...

    def upsert(self, selector: Selector, attrs: dict[str, str]) -> None:
        """Create the element if absent, otherwise set attrs on the first match."""
        ...

    def remove_attribute(self, selector: Selector, name: str) -> None: ...

    def remove_duplicates(self, selector: Selector) -> int:
        """Remove all but the first matching element; return how many were removed."""
        ...

    def get_text(self, selector: Selector) -> str | None:
        """Text content of the first matching element, or None when absent."""
        ...

    def set_text(self, selector: Selector, text: str, attrs: dict[str, str]) -> None:
        """Create the element if absent, then set its attrs and text content."""
        ...


def infer_icon_type(href: str) -> str | None:
    """Infer an icon MIME type from a URL extension or data URI prefix.

    Args:
        href: Icon URL or data URI

    Returns:
        MIME type, or None when it cannot be determined
    """
    if not href:
        return None
    if href.lower().startswith("data:"):
        mime = href[5:].split(",", 1)[0].split(";", 1)[0].strip().lower()
        return mime if mime.startswith("image/") else None
    extension = posixpath.splitext(urlsplit(href).path.lower())[1]
    return ICON_TYPES_BY_EXTENSION.get(extension)


# =============================================================================
# IN-MEMORY SINK
# =============================================================================


@dataclass
class HeadElement:
    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    text: str | None = None

    def matches(self, selector: Selector) -> bool:
        return self.tag == selector.tag and self.attrs.get(selector.attribute) == selector.value


class HeadDocument:
    """In-memory TagSink; every mutation increments write_count."""

    def __init__(self, title: str = "", elements: list[HeadElement] | None = None) -> None:
        self._title = title
        self.elements: list[HeadElement] = list(elements or [])
        self.write_count = 0

    @property
    def title(self) -> str:
        return self._title

    def set_title(self, title: str) -> None:
        self._title = title
        self.write_count += 1

    def find_all(self, selector: Selector) -> list[HeadElement]:
        return [element for element in self.elements if element.matches(selector)]

    def get(self, selector: Selector) -> dict[str, str] | None:
        matches = self.find_all(selector)
        return dict(matches[0].attrs) if matches else None

    def upsert(self, selector: Selector, attrs: dict[str, str]) -> None:
        matches = self.find_all(selector)
        if matches:
            matches[0].attrs.update(attrs)
        else:
            self.elements.append(
                HeadElement(selector.tag, {selector.attribute: selector.value, **attrs})
            )
        self.write_count += 1

    def remove_attribute(self, selector: Selector, name: str) -> None:
        matches = self.find_all(selector)
        if matches and name in matches[0].attrs:
            del matches[0].attrs[name]
            self.write_count += 1

    def remove_duplicates(self, selector: Selector) -> int:
        duplicates = self.find_all(selector)[1:]
        if not duplicates:
            return 0
        self.elements = [
            element
            for element in self.elements
            if not any(element is duplicate for duplicate in duplicates)
        ]
        self.write_count += len(duplicates)
        return len(duplicates)

    def get_text(self, selector: Selector) -> str | None:
        matches = self.find_all(selector)
        return matches[0].text if matches else None

    def set_text(self, selector: Selector, text: str, attrs: dict[str, str]) -> None:
        matches = self.find_all(selector)
        if matches:
            matches[0].attrs.update(attrs)
            matches[0].text = text
        else:
            self.elements.append(
                HeadElement(selector.tag, {selector.attribute: selector.value, **attrs}, text)
            )
        self.write_count += 1

    def render(self) -> str:
        """Render the head contents as an HTML fragment."""
        lines = [f"<title>{html.escape(self._title)}</title>"]
        for element in self.elements:
            attrs = " ".join(
                f'{name}="{html.escape(value, quote=True)}"'
                for name, value in element.attrs.items()
            )
            if element.text is None:
                lines.append(f"<{element.tag} {attrs}>")
            else:
                # "</" would close the script element early
                body = element.text.replace("</", "<\/")
                lines.append(f"<{element.tag} {attrs}>{body}</{element.tag}>")
        return "\n".join(lines)


# =============================================================================
# APPLIER
# =============================================================================


class DocumentMetadataApplier:
    """Applies ResolvedMetadata to a TagSink with diff-only upserts.

    Usage:
        document = HeadDocument()
        writes = DocumentMetadataApplier(document).apply(resolved)
    """

    def __init__(self, sink: TagSink) -> None:
        self._sink = sink
        self._writes = 0

    def apply(self, resolved: ResolvedMetadata) -> int:
        """Apply resolved metadata.

        Args:
            resolved: Output of the resolution cascade

        Returns:
            Number of writes performed on the sink
        """
        self._writes = 0

        if resolved.title and self._sink.title != resolved.title:
            self._sink.set_title(resolved.title)
            self._writes += 1

        self._set_content(meta_name("description"), resolved.description)
        self._set_content(meta_name("keywords"), ", ".join(resolved.keywords))
        self._apply_robots(resolved.noindex)
        self._set_attr(link_rel("canonical"), "href", resolved.canonical_url)

        self._set_content(meta_property("og:title"), resolved.title)
        self._set_content(meta_property("og:description"), resolved.description)
        self._set_content(meta_property("og:type"), resolved.og_type)
        self._set_content(meta_property("og:url"), resolved.canonical_url)
        self._set_content(meta_property("og:image"), resolved.og_image)
        self._set_content(meta_property("og:site_name"), resolved.site_name)

        self._set_content(meta_name("twitter:card"), TWITTER_CARD)
        self._set_content(meta_name("twitter:title"), resolved.title)
        self._set_content(meta_name("twitter:description"), resolved.description)
        self._set_content(meta_name("twitter:image"), resolved.og_image)
        if resolved.twitter_handle:
            handle = resolved.twitter_handle.lstrip("@")
            self._set_content(meta_name("twitter:site"), f"@{handle}")

        self._set_content(meta_property("fb:app_id"), resolved.facebook_app_id)

        if resolved.favicon:
            for rel in FAVICON_RELS:
                self._sync_icon(rel, resolved.favicon)

        if resolved.structured_data:
            self._set_structured_data(resolved.structured_data)

        logger.debug(
            "Applied page metadata",
            extra={"writes": self._writes, "noindex": resolved.noindex},
        )
        return self._writes

    def _set_attr(self, selector: Selector, name: str, value: str | None) -> None:
        if not value:
            return
        current = self._sink.get(selector)
        if current is not None and current.get(name) == value:
            return
        self._sink.upsert(selector, {name: value})
        self._writes += 1

    def _set_content(self, selector: Selector, content: str | None) -> None:
        self._set_attr(selector, "content", content)

    def _apply_robots(self, noindex: bool) -> None:
        selector = meta_name("robots")
        if noindex:
            self._set_content(selector, ROBOTS_NOINDEX)
            return
        # Never removed: only a stale noindex is flipped back
        current = self._sink.get(selector)
        if current is not None and "noindex" in current.get("content", ""):
            self._set_content(selector, ROBOTS_INDEX)

    def _set_structured_data(self, data: dict[str, Any]) -> None:
        selector = script_id(SCHEMA_SCRIPT_ID)
        self._writes += self._sink.remove_duplicates(selector)

        text = serialize_json_ld(data)
        current = self._sink.get(selector)
        if (
            current is not None
            and current.get("type") == JSON_LD_TYPE
            and self._sink.get_text(selector) == text
        ):
            return
        self._sink.set_text(selector, text, {"type": JSON_LD_TYPE})
        self._writes += 1

    def _sync_icon(self, rel: str, href: str) -> None:
        selector = link_rel(rel)
        self._writes += self._sink.remove_duplicates(selector)

        current = self._sink.get(selector)
        if current is not None and current.get("href") == href:
            return

        attrs = {"href": href}
        icon_type = infer_icon_type(href)
        if icon_type:
            attrs["type"] = icon_type
        self._sink.upsert(selector, attrs)
        self._writes += 1

        if icon_type is None and current is not None and "type" in current:
            self._sink.remove_attribute(selector, "type")
            self._writes += 1
