from typing import Dict

import pytest

from classes.deploy_digest import fingerprint
from tests.fakes import VALID_INDEX, FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def site_files() -> Dict[str, str]:
    return {
        "index.html": VALID_INDEX.replace("</head>", '<link rel="stylesheet" href="styles.css"></head>'),
        "styles.css": "body { margin: 0; }",
    }


@pytest.fixture
def index_sha() -> str:
    return fingerprint(VALID_INDEX)
