import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
TESTS = Path(__file__).resolve().parent

for path in (SRC, TESTS):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from helpers import make_store  # noqa: E402


@pytest.fixture
def stores():
    return [
        make_store("S1", "Downtown", "DT-01", "North"),
        make_store("S2", "Harbour", "HB-02", "South"),
        make_store("S3", "Airport", "AP-03", "North"),
    ]
