"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from gitlab_rest_api.api import GitLabAPI
from gitlab_rest_api.config import Config, LogLevel
from gitlab_rest_api.logging_config import reset_logging
from gitlab_rest_api.rest.client import RESTClient
from gitlab_rest_api.security import PrivateTokenAuthStrategy

API_URL = "https://gitlab.example.com/api/v4"
TOKEN = "glpat-test-token"


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Keep the user's environment and config file out of the tests."""
    for key in list(os.environ):
        if key.startswith("GITLAB_API_"):
            monkeypatch.delenv(key)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    yield
    reset_logging()


@pytest.fixture
def api_url() -> str:
    """Base URL of the fake GitLab API."""
    return API_URL


@pytest.fixture
def rest_client() -> Iterator[RESTClient]:
    """Create a transport client authenticated with a private token."""
    client = RESTClient(API_URL, auth=PrivateTokenAuthStrategy(TOKEN), retry_wait=0)
    yield client
    client.close()


@pytest.fixture
def api() -> Iterator[GitLabAPI]:
    """Create an API client authenticated with a private token."""
    client = GitLabAPI(API_URL, private_token=TOKEN, retry_wait=0)
    yield client
    client.close()


@pytest.fixture
def debug_config() -> Config:
    """Create a configuration with debug logging."""
    return Config(url=API_URL, private_token=TOKEN, log_level=LogLevel.DEBUG)
