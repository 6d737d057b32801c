from pathlib import Path

import pytest

from bamambig.toy_data import make_toy_data


@pytest.fixture
def toy_bam(tmp_path: Path) -> str:
    return make_toy_data(outdir=tmp_path / "toy")["bam"]
