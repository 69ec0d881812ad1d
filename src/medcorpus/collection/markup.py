"""JATS/NXML article parser producing one source record per file."""

from __future__ import annotations

import hashlib
from pathlib import Path

from lxml import etree

from medcorpus.collection.errors import MalformedResourceError
from medcorpus.collection.models import SourceRecord
from medcorpus.collection.normalization import join_non_empty, normalize_whitespace

# Recognized element name -> record field name.
_ACCEPTED_ELEMENTS: dict[str, str] = {
    "article-title": "title",
    "abstract": "abstract",
    "body": "full_text",
    "journal-title": "journal",
    "year": "publish_time",
}

# ``pub-id-type`` attribute of ``article-id`` -> record field name.
_ARTICLE_ID_TYPES: dict[str, str] = {
    "pmid": "pubmed_id",
    "pmc": "pmcid",
    "publisher-id": "publisher_id",
    "doi": "doi",
}

_ID_PRECEDENCE = ("pubmed_id", "pmcid", "publisher_id", "doi")


def _local_name(element: etree._Element) -> str | None:
    if not isinstance(element.tag, str):
        return None
    return etree.QName(element).localname


def _element_text(element: etree._Element) -> str:
    return normalize_whitespace(" ".join(element.itertext()))


def extract_article_fields(root: etree._Element) -> dict[str, str]:
    """Capture the first matching element's text for each recognized name."""

    fields: dict[str, str] = {}
    for element in root.iter():
        name = _local_name(element)
        if name is None:
            continue

        if name == "article-id":
            key = _ARTICLE_ID_TYPES.get((element.get("pub-id-type") or "").strip().lower())
        else:
            key = _ACCEPTED_ELEMENTS.get(name)

        if key is None or key in fields:
            continue
        fields[key] = _element_text(element)

    return fields


def select_article_id(fields: dict[str, str], path: Path) -> str:
    """Pick the best identifier: pmid, pmc, publisher id, doi, title hash, file name."""

    for key in _ID_PRECEDENCE:
        value = fields.get(key)
        if value:
            return value

    title = fields.get("title")
    if title:
        return hashlib.sha256(title.encode("utf-8")).hexdigest()
    return path.stem


def _decode_payload(payload: bytes, root: etree._Element) -> str:
    """Source text of the article in its declared encoding."""

    encoding = root.getroottree().docinfo.encoding or "utf-8"
    try:
        return payload.decode(encoding)
    except (LookupError, UnicodeDecodeError):
        # Declared encoding is unknown to Python or wrong; lxml already decoded it.
        return etree.tostring(root.getroottree(), encoding="unicode")


def parse_article(payload: bytes, path: Path) -> SourceRecord:
    """Parse one article's bytes into a source record."""

    parser = etree.XMLParser(resolve_entities=False, no_network=True, load_dtd=False, huge_tree=False)
    try:
        root = etree.fromstring(payload, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise MalformedResourceError(path, f"Failed to parse markup: {exc}") from exc
    if root is None:
        raise MalformedResourceError(path, "Markup document is empty")

    fields = extract_article_fields(root)
    content = join_non_empty([fields.get("title", ""), fields.get("abstract", ""), fields.get("full_text", "")])

    return SourceRecord(
        id=select_article_id(fields, path),
        content=content,
        fields=fields,
        raw=_decode_payload(payload, root),
    )
