import pytest

from config import ApplicationConfig


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Cost 4 keeps hashing fast; production cost comes from BCRYPT_ROUNDS"""
    monkeypatch.setattr(ApplicationConfig, "BCRYPT_ROUNDS", 4)
