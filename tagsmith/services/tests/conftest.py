"""Shared pytest fixtures for services tests."""

import tempfile
from pathlib import Path

import pytest

from tagsmith.services.tagger.config import TaggerConfig

from .fakes import FakeChatClient, make_store


@pytest.fixture
def temp_dir():
    """Temporary directory, cleaned up after the test."""
    with tempfile.TemporaryDirectory(ignore_cleanup_errors=True) as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def tagger_config():
    """Config with a dummy key and no retry delay."""
    return TaggerConfig(api_key="sk-test", retry_delay=0.0)


@pytest.fixture
def fake_client():
    return FakeChatClient()


@pytest.fixture
def sample_documents():
    """Three regular papers plus one attachment-type item."""
    return [
        {
            "id": "D1",
            "title": "Learning Agile Locomotion",
            "abstract": "We train a quadruped to run.",
            "tags": ["task:locomotion", "robot_type:quadruped", "to-read"],
            "extra": "",
            "children": [
                {"id": "N1", "item_type": "note", "note": "<p>Uses <b>PPO</b></p>"},
                {
                    "id": "A1",
                    "item_type": "attachment",
                    "content_type": "application/pdf",
                    "fulltext": "Introduction\nWe present\na method.",
                },
            ],
        },
        {
            "id": "D2",
            "title": "Humanoid Parkour",
            "tags": ["task:locomotion", "task:parkour"],
            "extra": "Citation Key: smith2024",
        },
        {
            "id": "D3",
            "title": "Whole-body Manipulation",
            "tags": [],
            "extra": "",
        },
        {
            "id": "PDF1",
            "item_type": "attachment",
            "title": "Full Text PDF",
            "tags": [],
        },
    ]


@pytest.fixture
def store(sample_documents):
    return make_store(sample_documents)
