"""Shared test fixtures for Attune."""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture(autouse=True)
def reset_metrics():
    """Metrics are a module-level singleton; start every test from zero."""
    from observability import metrics

    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "attune.db"


@pytest.fixture
def sample_intentions():
    from progress.models import Intention

    created = datetime(2024, 3, 1, 8, 0)
    return [
        Intention(id="read", title="Read", target_value=20, unit="pages", created_at=created),
        Intention(
            id="app",
            title="Work on app",
            target_value=60,
            unit="minutes",
            category="career_work",
            created_at=created,
        ),
        Intention(id="workout", title="Workout", target_value=1, unit="times", created_at=created),
    ]


@pytest.fixture
def stores(db_path):
    """All persistence stores on one temp database."""
    from progress.intentions import IntentionStore
    from progress.mood import DailyMoodStore
    from progress.store import CheckInStore, OverrideStore, ProgressStore

    return {
        "intention_store": IntentionStore(db_path),
        "check_in_store": CheckInStore(db_path),
        "progress_store": ProgressStore(db_path),
        "override_store": OverrideStore(db_path),
        "mood_store": DailyMoodStore(db_path),
    }


@pytest.fixture
def active_set(stores, sample_intentions):
    """Intentions saved and grouped into a set started on 2024-03-01."""
    store = stores["intention_store"]
    for intention in sample_intentions:
        store.save_intention(intention)
    return store.start_set([i.id for i in sample_intentions], started_at=datetime(2024, 3, 1, 8, 0))
