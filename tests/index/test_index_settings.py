from __future__ import annotations

import pytest

from medcorpus.index.config import IndexSettings


def test_from_env_defaults() -> None:
    settings = IndexSettings.from_env({})

    assert settings == IndexSettings()
    assert settings.workers == 1
    assert settings.fallback_dir == "newJsonFiles"


def test_from_env_parses_flags_and_workers() -> None:
    settings = IndexSettings.from_env(
        {
            "MEDCORPUS_STORE_RAW": "yes",
            "MEDCORPUS_STORE_CONTENTS": "1",
            "MEDCORPUS_STORE_DOCVECTORS": "off",
            "MEDCORPUS_STORE_POSITIONS": " TRUE ",
            "MEDCORPUS_WORKERS": "4",
            "MEDCORPUS_FALLBACK_DIR": "extra_json",
        }
    )

    assert settings.store_raw
    assert settings.store_contents
    assert not settings.store_docvectors
    assert settings.store_positions
    assert settings.workers == 4

    options = settings.generator_options()
    assert options.store_raw and options.store_positions
    assert settings.side_file_layout().fallback_dir == "extra_json"


@pytest.mark.parametrize(
    ("environ", "message"),
    [
        ({"MEDCORPUS_STORE_RAW": "maybe"}, "MEDCORPUS_STORE_RAW"),
        ({"MEDCORPUS_WORKERS": "0"}, "MEDCORPUS_WORKERS"),
        ({"MEDCORPUS_WORKERS": "many"}, "MEDCORPUS_WORKERS"),
        ({"MEDCORPUS_WORKERS": " "}, "MEDCORPUS_WORKERS"),
        ({"MEDCORPUS_FALLBACK_DIR": " "}, "MEDCORPUS_FALLBACK_DIR"),
    ],
)
def test_from_env_rejects_invalid_values(environ: dict[str, str], message: str) -> None:
    with pytest.raises(ValueError, match=message):
        IndexSettings.from_env(environ)
