from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

METADATA_COLUMNS = [
    "cord_uid",
    "sha",
    "source_x",
    "title",
    "doi",
    "pmcid",
    "pubmed_id",
    "license",
    "abstract",
    "publish_time",
    "authors",
    "journal",
    "Microsoft Academic Paper ID",
    "WHO #Covidence",
    "has_pdf_parse",
    "has_pmc_xml_parse",
    "full_text_file",
    "url",
]


def make_row(cord_uid: str, **values: str) -> dict[str, str]:
    row = {column: "" for column in METADATA_COLUMNS}
    row["cord_uid"] = cord_uid
    row["has_pdf_parse"] = "False"
    row["has_pmc_xml_parse"] = "False"
    row.update(values)
    return row


def write_metadata_csv(path: Path, rows: list[dict[str, str]], columns: list[str] | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    header = columns or METADATA_COLUMNS
    with open(path, "w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(header)
        for row in rows:
            writer.writerow([row.get(column, "") for column in header])
    return path


def write_side_file(
    path: Path,
    *,
    title: str = "",
    abstract: list[str] | None = None,
    body: list[str] | None = None,
    has_covid: object | None = None,
    title_umls: str | None = None,
    title_semtypes: str | None = None,
    paragraph_umls: str | None = None,
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)

    def paragraph(text: str) -> dict[str, str]:
        node = {"text": text}
        if paragraph_umls is not None:
            node["text_umls_concepts"] = paragraph_umls
            node["text_umls_semtypes"] = "T047"
        return node

    metadata: dict[str, object] = {"title": title}
    if title_umls is not None:
        metadata["title_umls_concepts"] = title_umls
    if title_semtypes is not None:
        metadata["title_umls_semtypes"] = title_semtypes

    document: dict[str, object] = {
        "metadata": metadata,
        "abstract": [paragraph(text) for text in abstract or []],
        "body_text": [paragraph(text) for text in body or []],
    }
    if has_covid is not None:
        document["hasCovid19"] = has_covid

    path.write_text(json.dumps(document), encoding="utf-8")
    return path


@pytest.fixture
def cord_root(tmp_path: Path) -> Path:
    """Three rows: a PMC parse, a PDF parse, and a row without any side-file."""

    root = tmp_path / "cord19"
    write_metadata_csv(
        root / "metadata.csv",
        [
            make_row(
                "ug7v899j",
                title="Clinical features of culture-proven Mycoplasma pneumoniae infections",
                pmcid="PMC35282",
                has_pmc_xml_parse="True",
                full_text_file="comm_use_subset",
                authors="Madani, Tariq A; Al-Ghamdi, Aisha A",
                publish_time="2001-07-04",
                journal="BMC Infect Dis",
                doi="10.1186/1471-2334-1-6",
            ),
            make_row(
                "02tnwd4m",
                title="Nitric oxide: a pro-inflammatory mediator in lung disease?",
                sha="1b0c2a5d; d9d5ec5a0a4bb3f6",
                has_pdf_parse="True",
                full_text_file="noncomm_use_subset",
                publish_time="2000-08-15",
            ),
            make_row(
                "ejv2xln0",
                title="Surfactant protein-D and pulmonary host defense",
                abstract="Surfactant protein-D (SP-D) participates in the innate response.",
                publish_time="N/A",
            ),
        ],
    )
    write_side_file(
        root / "comm_use_subset" / "pmc_json" / "PMC35282.xml.json",
        title="Clinical features of culture-proven Mycoplasma pneumoniae infections",
        abstract=["Objective: this retrospective chart review.", "Results: 40 patients were evaluated."],
        body=["Mycoplasma pneumoniae is a common cause.", "Methods were standard.", "Discussion follows."],
        has_covid=True,
        title_umls="C0026936,C0032285",
        title_semtypes="T007,T047",
        paragraph_umls="C0032285",
    )
    write_side_file(
        root / "noncomm_use_subset" / "pdf_json" / "d9d5ec5a0a4bb3f6.json",
        title="Nitric oxide: a pro-inflammatory mediator in lung disease?",
        body=["Inflammation is a hallmark of many lung diseases."],
    )
    return root
