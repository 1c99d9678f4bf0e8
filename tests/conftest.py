import os

import pytest

from review_manager import ReviewStore

SAMPLE_CSV = (
    "ReviewerName,SatisfactionScore,ReviewDate,Feedback\n"
    "Alice,5,2024-01-15,Excellent service\n"
    "Bob,4,2024-01-16,Good product\n"
    "Charlie,3,2024-01-17,Average experience\n"
    "David,2,2024-01-18,Could be better\n"
    "Eve,5,2024-01-19,Amazing quality\n"
)


@pytest.fixture
def sample_csv(tmp_path):
    path = tmp_path / "reviews.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path


@pytest.fixture
def store(sample_csv):
    return ReviewStore.from_csv(sample_csv)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No REVIEW_MANAGER_* variables and no stray .env file."""
    for key in list(os.environ):
        if key.startswith("REVIEW_MANAGER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
