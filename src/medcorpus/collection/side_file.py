"""Side-file resolution and parsing for table rows.

A table row points indirectly at a per-article JSON side-file that carries the
full text and UMLS annotations. Resolution is deterministic, first match wins:

1. ``has_pmc_xml_parse`` is true: ``{root}/{full_text_file}/pmc_json/{pmcid}.xml.json``
2. ``has_pdf_parse`` is true: the last ``sha`` hash, ``{root}/{full_text_file}/pdf_json/{sha}.json``
3. otherwise ``{root}/newJsonFiles/{cord_uid}.json`` when that file exists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
from typing import Any, Mapping

from medcorpus.collection.errors import SideFileUnavailableError
from medcorpus.collection.normalization import join_non_empty

logger = logging.getLogger(__name__)

DEFAULT_MARKUP_SUBDIR = "pmc_json"
DEFAULT_MARKUP_SUFFIX = ".xml.json"
DEFAULT_DERIVED_SUBDIR = "pdf_json"
DEFAULT_FALLBACK_DIR = "newJsonFiles"


@dataclass(frozen=True, slots=True)
class SideFileLayout:
    """Directory names used to locate side-files under a collection root."""

    markup_subdir: str = DEFAULT_MARKUP_SUBDIR
    markup_suffix: str = DEFAULT_MARKUP_SUFFIX
    derived_subdir: str = DEFAULT_DERIVED_SUBDIR
    fallback_dir: str = DEFAULT_FALLBACK_DIR


@dataclass(frozen=True, slots=True)
class Paragraph:
    """One abstract or body paragraph of a side-file."""

    text: str
    umls: str = ""
    semtypes: str = ""


@dataclass(frozen=True, slots=True)
class SideFileContent:
    """Parsed view of one side-file."""

    title: str = ""
    title_umls: str = ""
    title_semtypes: str = ""
    umls: str = ""
    semtypes: str = ""
    has_covid: str = "False"
    abstract: tuple[Paragraph, ...] = ()
    body: tuple[Paragraph, ...] = ()
    raw: str | None = None


@dataclass(frozen=True, slots=True)
class RowContext:
    """Immutable per-row state threaded through row expansion."""

    base_id: str
    row: Mapping[str, str]
    side_file: SideFileContent = field(default_factory=SideFileContent)

    @property
    def title(self) -> str:
        """Title used for the row's title record."""

        if self.side_file.title.strip():
            return self.side_file.title
        return join_non_empty([self.row.get("title", ""), self.row.get("abstract", "")])

    @property
    def paragraphs(self) -> tuple[Paragraph, ...]:
        return self.side_file.abstract + self.side_file.body

    @property
    def full_text(self) -> str:
        return join_non_empty([paragraph.text for paragraph in self.paragraphs], "\n")

    @property
    def full_text_content(self) -> str:
        """Side-file title plus every paragraph, or the row's title and abstract."""

        content = join_non_empty([self.side_file.title, self.full_text], "\n")
        if content:
            return content
        return join_non_empty([self.row.get("title", ""), self.row.get("abstract", "")])

    @property
    def accumulated_umls(self) -> str:
        """Row-level concepts followed by every paragraph's concepts, never deduplicated."""

        parts = [self.side_file.umls, self.side_file.title_umls]
        parts.extend(paragraph.umls for paragraph in self.paragraphs)
        return ",".join(part for part in parts if part)

    @property
    def accumulated_semtypes(self) -> str:
        parts = [self.side_file.semtypes, self.side_file.title_semtypes]
        parts.extend(paragraph.semtypes for paragraph in self.paragraphs)
        return ",".join(part for part in parts if part)


def _is_true(flag: str | None) -> bool:
    return bool(flag) and "true" in flag.lower()


def resolve_side_file(row: Mapping[str, str], root: Path, layout: SideFileLayout | None = None) -> Path | None:
    """Return the side-file path for a row, or ``None`` when it has none."""

    layout = layout or SideFileLayout()
    bucket = row.get("full_text_file", "")

    if _is_true(row.get("has_pmc_xml_parse")):
        return root / bucket / layout.markup_subdir / f"{row.get('pmcid', '')}{layout.markup_suffix}"

    if _is_true(row.get("has_pdf_parse")):
        hashes = row.get("sha", "").split(";")
        return root / bucket / layout.derived_subdir / f"{hashes[-1].strip()}.json"

    fallback = root / layout.fallback_dir / f"{row.get('cord_uid', '')}.json"
    if fallback.is_file():
        return fallback
    return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, str):
        return value
    return str(value)


def _paragraphs(nodes: Any) -> tuple[Paragraph, ...]:
    if not isinstance(nodes, list):
        return ()

    paragraphs: list[Paragraph] = []
    for node in nodes:
        if not isinstance(node, dict):
            paragraphs.append(Paragraph(text=""))
            continue
        paragraphs.append(
            Paragraph(
                text=_as_text(node.get("text")),
                umls=_as_text(node.get("text_umls_concepts")),
                semtypes=_as_text(node.get("text_umls_semtypes")),
            )
        )
    return tuple(paragraphs)


def parse_side_file(payload: str) -> SideFileContent:
    """Parse side-file JSON text; raises ``ValueError`` on malformed content."""

    document = json.loads(payload)
    if not isinstance(document, dict):
        raise ValueError("Side-file root is not a JSON object")

    metadata = document.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}

    covid = metadata.get("hasCovid19", document.get("hasCovid19"))

    return SideFileContent(
        title=_as_text(metadata.get("title")),
        title_umls=_as_text(metadata.get("title_umls_concepts")),
        title_semtypes=_as_text(metadata.get("title_umls_semtypes")),
        umls=_as_text(metadata.get("umls")),
        semtypes=_as_text(metadata.get("semtypes")),
        has_covid=_as_text(covid) if covid is not None else "False",
        abstract=_paragraphs(document.get("abstract")),
        body=_paragraphs(document.get("body_text")),
        raw=payload,
    )


def load_side_file(path: Path) -> SideFileContent:
    """Read and parse one side-file, releasing the handle before returning."""

    try:
        with open(path, "r", encoding="utf-8") as handle:
            payload = handle.read()
        return parse_side_file(payload)
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        raise SideFileUnavailableError(path, f"Failed to load side-file: {exc}") from exc


def build_row_context(
    row: Mapping[str, str],
    root: Path,
    layout: SideFileLayout | None = None,
    *,
    id_column: str = "cord_uid",
) -> RowContext:
    """Resolve and load a row's side-file, salvaging metadata on failure."""

    base_id = row.get(id_column, "")
    path = resolve_side_file(row, root, layout)
    if path is None:
        return RowContext(base_id=base_id, row=row)

    try:
        content = load_side_file(path)
    except SideFileUnavailableError as exc:
        logger.warning("Side-file unavailable for %s: %s", base_id, exc)
        return RowContext(base_id=base_id, row=row)

    return RowContext(base_id=base_id, row=row, side_file=content)
