import pytest
from django.core.cache import cache

from src.profiles.tests.fakes import reset_fakes


@pytest.fixture(autouse=True)
def _clean_state():
    cache.clear()
    reset_fakes()
    yield
    cache.clear()


@pytest.fixture
def fake_collaborators(settings):
    settings.PROFILE_SIGNER_CLASS = "src.profiles.tests.fakes.FakeSigner"
    settings.PROFILE_ALIAS_DIRECTORY_CLASS = "src.profiles.tests.fakes.FakeDirectory"
    settings.PROFILE_HISTORY_REFRESHER_CLASS = "src.profiles.tests.fakes.FakeHistory"
    return settings
