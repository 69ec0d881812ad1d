"""Runtime configuration for collection indexing."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Mapping

from medcorpus.collection.side_file import DEFAULT_FALLBACK_DIR, SideFileLayout
from medcorpus.index.generator import GeneratorOptions


DEFAULT_WORKERS = 1

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(*, name: str, raw_value: str) -> bool:
    value = raw_value.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (got {raw_value!r})")


def _parse_positive_int(*, name: str, raw_value: str, minimum: int = 1) -> int:
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer (got {raw_value!r})") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


@dataclass(frozen=True, slots=True)
class IndexSettings:
    """Validated indexing settings read from the environment."""

    store_raw: bool = False
    store_contents: bool = False
    store_docvectors: bool = False
    store_positions: bool = False
    workers: int = DEFAULT_WORKERS
    fallback_dir: str = DEFAULT_FALLBACK_DIR

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "IndexSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        flags: dict[str, bool] = {}
        for attribute, variable in (
            ("store_raw", "MEDCORPUS_STORE_RAW"),
            ("store_contents", "MEDCORPUS_STORE_CONTENTS"),
            ("store_docvectors", "MEDCORPUS_STORE_DOCVECTORS"),
            ("store_positions", "MEDCORPUS_STORE_POSITIONS"),
        ):
            raw = source.get(variable, "").strip()
            flags[attribute] = _parse_bool(name=variable, raw_value=raw) if raw else False

        workers_raw = source.get("MEDCORPUS_WORKERS", str(DEFAULT_WORKERS)).strip()
        if not workers_raw:
            raise ValueError("MEDCORPUS_WORKERS cannot be empty")
        workers = _parse_positive_int(name="MEDCORPUS_WORKERS", raw_value=workers_raw)

        fallback_dir = source.get("MEDCORPUS_FALLBACK_DIR", DEFAULT_FALLBACK_DIR).strip()
        if not fallback_dir:
            raise ValueError("MEDCORPUS_FALLBACK_DIR cannot be empty")

        return cls(workers=workers, fallback_dir=fallback_dir, **flags)

    def generator_options(self) -> GeneratorOptions:
        return GeneratorOptions(
            store_raw=self.store_raw,
            store_contents=self.store_contents,
            store_docvectors=self.store_docvectors,
            store_positions=self.store_positions,
        )

    def side_file_layout(self) -> SideFileLayout:
        return SideFileLayout(fallback_dir=self.fallback_dir)
