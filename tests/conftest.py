import pytest

from loremaker.config import Settings
from tests.helpers import FakeClock, gviz_body


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, sheet_id="sheet-123", sheet_tab=None, cache_ttl=600_000)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ava_feed() -> str:
    return gviz_body(
        ["Name", "Powers", "Faction", "Cover Image"],
        [["Ava", "Flight=8, Shield:4", "Sentinels", "https://drive.google.com/file/d/AVA1/view"]],
    )
