"""Shared fixtures: a fake upstream session plus config pointing at temp dirs."""

import random
import shutil
from pathlib import Path

import pytest

from config import Config
from main import create_app
from tests.fakes import FakeSession

PROJECT_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def template_dir(tmp_path):
    target = tmp_path / "html"
    shutil.copytree(PROJECT_ROOT / "html", target)
    return target


@pytest.fixture
def config(tmp_path, template_dir):
    return Config(
        lastfm_key="test-lastfm-key",
        giphy_key="test-giphy-key",
        cache_dir=tmp_path / "cache",
        template_dir=template_dir,
        rate_limit_enabled=False,
    )


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def app(config, session):
    app = create_app(config, session=session, rng=random.Random(1234))
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
