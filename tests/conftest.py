"""Shared test fixtures and configuration."""

import os

import pytest

from register_search.search.models import Record


# Complete test environment that overrides every REGISTER_* setting
TEST_ENV = {
    "REGISTER_DATA_URL": "https://example.com/companies.json",
    "REGISTER_DATA_GZIPPED": "false",
    "REGISTER_DATA_JSONL": "false",
    "REGISTER_HTTP_TIMEOUT": "30",
    "REGISTER_USER_AGENT": "register-search-tests",
    "REGISTER_MAX_RESULTS": "1000",
    "REGISTER_INDEXED_FIELDS": "name,city,type",
    "REGISTER_LOG_LEVEL": "info",
    "REGISTER_LOG_JSON": "false",
}


for key, value in TEST_ENV.items():
    os.environ[key] = value


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset REGISTER_* variables before each test."""
    for key in list(os.environ):
        if key.startswith("REGISTER_"):
            monkeypatch.delenv(key, raising=False)
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def swiss_records() -> list[Record]:
    """The three-company sample used across search tests."""
    return [
        Record(id=1, name="Alpine Watch AG", city="Zurich"),
        Record(id=2, name="Geneva Trading SA", city="Geneva"),
        Record(id=3, name="Alpine Textiles", city="Basel"),
    ]


@pytest.fixture
def typed_records() -> list[Record]:
    """Records with types, addresses and extra attributes."""
    return [
        Record(id="CHE-100", name="Bergbahn Zermatt AG", city="Zermatt", type="Transport", address="Bahnhofstrasse 1"),
        Record(id="CHE-101", name="Café du Lac Sàrl", city="Lausanne", type="Gastronomie"),
        Record(id="CHE-102", name="Zermatt Uhren GmbH", city="Zermatt", type="Retail", extra={"uid": "CHE-102.000"}),
        Record(id="CHE-103", name="Lac Léman Transport SA", city="Genève", type="Transport"),
    ]
