import pytest

from electrorank.config import Settings
from electrorank.repository import ProductRepository


@pytest.fixture
def settings(tmp_path):
    return Settings(
        site_name="ElectroRank",
        base_url="https://electrorank.test",
        data_dir=tmp_path / "data",
        output_dir=tmp_path / "pages",
        ping_url=None,
    )


@pytest.fixture
def repository(settings):
    repo = ProductRepository(settings.data_file)
    repo.init()
    yield repo
    repo.close()
