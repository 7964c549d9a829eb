import pytest

from sonarcloud_issues.config import ORGANIZATION_ENVS, PROJECT_KEY_ENV, TOKEN_ENV


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Tests never see SONARCLOUD_* variables from the developer's shell."""
    for name in (TOKEN_ENV, PROJECT_KEY_ENV, *ORGANIZATION_ENVS):
        monkeypatch.delenv(name, raising=False)
