"""CLI command tests using Click CliRunner.

Strategy: build real stores on a temp database with a mocked LLM provider,
then patch get_components at each command module's import point.
"""

import json
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from cli.config_models import AttuneConfig
from cli.main import cli
from progress.models import Intention


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config(tmp_path):
    return AttuneConfig.from_dict(
        {
            "paths": {
                "data_dir": str(tmp_path / "data"),
                "db_path": str(tmp_path / "data" / "attune.db"),
                "log_file": str(tmp_path / "data" / "attune.log"),
            }
        }
    )


@pytest.fixture
def provider():
    provider = MagicMock()
    provider.generate.return_value = json.dumps({"items": []})
    return provider


@pytest.fixture
def patch_components(config, provider):
    """Real components on a temp DB, LLM mocked."""
    from cli.utils import get_components

    with (
        patch("cli.config.load_config_model", return_value=config),
        patch("llm.factory.provider_from_config", return_value=provider),
    ):
        comps = get_components()

    targets = [
        "cli.commands.extract.get_components",
        "cli.commands.checkin.get_components",
        "cli.commands.progress.get_components",
        "cli.commands.intentions.get_components",
        "cli.commands.mood.get_components",
        "cli.commands.momentum.get_components",
    ]
    patches = [patch(t, return_value=comps) for t in targets]
    patches.append(patch("cli.main.load_config_model", return_value=config))
    patches.append(patch("cli.main.setup_logging"))
    for p in patches:
        p.start()
    yield comps
    for p in patches:
        p.stop()


@pytest.fixture
def with_intentions(patch_components):
    store = patch_components["intention_store"]
    store.save_intention(Intention(id="read", title="Read", target_value=20, unit="pages"))
    store.save_intention(Intention(id="app", title="Work on app", target_value=60, unit="minutes"))
    store.start_set(["read", "app"], started_at=datetime(2024, 1, 1))
    return patch_components


# -- Top level --


class TestMain:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_config_error(self, runner):
        with patch("cli.main.load_config_model", side_effect=ValueError("bad yaml")):
            result = runner.invoke(cli, ["mood", "show"])
        assert result.exit_code == 1
        assert "Config error" in result.output

    def test_components_keys(self, patch_components):
        assert {"pipeline", "processor", "streak", "streak_loader", "intentions_parser"} <= set(patch_components)
        assert patch_components["processor"].checker.late_hour == 18


# -- Intentions --


class TestIntentionCommands:
    def test_add_and_list(self, runner, patch_components):
        result = runner.invoke(cli, ["intentions", "add", "Read", "-t", "20", "-u", "Pages", "--alias", "book"])
        assert result.exit_code == 0
        assert "Added" in result.output

        store = patch_components["intention_store"]
        [intention] = store.list_intentions()
        assert intention.unit == "pages"
        assert intention.aliases == ["book"]
        assert store.current_set().intention_ids == [intention.id]

        result = runner.invoke(cli, ["intentions", "list"])
        assert result.exit_code == 0
        assert "Read" in result.output

    def test_remove_starts_new_set(self, runner, with_intentions):
        result = runner.invoke(cli, ["intentions", "remove", "app"])
        assert result.exit_code == 0
        store = with_intentions["intention_store"]
        assert store.current_set().intention_ids == ["read"]
        assert not store.get_intention("app").is_active

    def test_remove_unknown(self, runner, patch_components):
        result = runner.invoke(cli, ["intentions", "remove", "nope"])
        assert result.exit_code == 1

    def test_parse_and_save(self, runner, patch_components, provider):
        provider.generate.return_value = json.dumps(
            {"intentions": [{"title": "Meditate", "target": 10, "unit": "min", "category": "health"}]}
        )
        result = runner.invoke(cli, ["intentions", "parse", "meditate ten minutes a day", "--save"])
        assert result.exit_code == 0
        assert "Saved 1 intention" in result.output
        [saved] = patch_components["intention_store"].list_intentions()
        assert (saved.title, saved.target_value, saved.unit) == ("Meditate", 10.0, "minutes")


# -- Check-ins and progress --


class TestCheckinCommands:
    def test_requires_intentions(self, runner, patch_components):
        result = runner.invoke(cli, ["checkin", "read 5 pages"])
        assert result.exit_code == 1
        assert "No intentions yet" in result.output

    def test_logs_progress_and_mood(self, runner, with_intentions, provider):
        provider.generate.return_value = json.dumps(
            {
                "updates": [
                    {"intentionId": "read", "updateType": "INCREMENT", "amount": 5, "unit": "pages", "confidence": 0.95}
                ],
                "moodLabel": "Calm",
                "moodScore": 7,
            }
        )
        result = runner.invoke(cli, ["checkin", "read 5 pages, feeling calm", "--resolve", "skip"])
        assert result.exit_code == 0
        assert "Progress logged" in result.output
        assert "Mood: Calm (7/10)" in result.output

        result = runner.invoke(cli, ["progress"])
        assert result.exit_code == 0
        assert "Overall:" in result.output

        result = runner.invoke(cli, ["momentum", "streak"])
        assert result.exit_code == 0
        assert "1 day" in result.output

    def test_fallback_message(self, runner, with_intentions, provider):
        provider.generate.return_value = json.dumps({"updates": []})
        result = runner.invoke(cli, ["checkin", "worked on the app for 30 minutes"])
        assert result.exit_code == 0
        assert "offline fallback" in result.output

    def test_nothing_found(self, runner, with_intentions, provider):
        provider.generate.return_value = json.dumps({"updates": []})
        result = runner.invoke(cli, ["checkin", "quiet day"])
        assert result.exit_code == 0
        assert "No progress found" in result.output

    def test_progress_override(self, runner, with_intentions):
        result = runner.invoke(cli, ["progress", "--set", "read", "12"])
        assert result.exit_code == 0
        assert "12 pages" in result.output
        assert "60%" in result.output

        result = runner.invoke(cli, ["progress", "--set", "ghost", "1"])
        assert result.exit_code == 1

    def test_progress_bad_date(self, runner, with_intentions):
        result = runner.invoke(cli, ["progress", "-d", "yesterday"])
        assert result.exit_code != 0


# -- Mood and momentum --


class TestMoodCommands:
    def test_set_show_clear(self, runner, patch_components):
        result = runner.invoke(cli, ["mood", "set", "8"])
        assert result.exit_code == 0
        assert "Good (8/10)" in result.output

        result = runner.invoke(cli, ["mood", "show"])
        assert "manual" in result.output

        result = runner.invoke(cli, ["mood", "clear"])
        assert result.exit_code == 0
        result = runner.invoke(cli, ["mood", "show"])
        assert "No mood recorded" in result.output

    def test_score_range(self, runner, patch_components):
        result = runner.invoke(cli, ["mood", "set", "11"])
        assert result.exit_code != 0


class TestMomentumCommands:
    def test_streak_zero(self, runner, patch_components):
        result = runner.invoke(cli, ["momentum", "streak"])
        assert result.exit_code == 0
        assert "0 days" in result.output

    def test_week_and_day(self, runner, with_intentions):
        runner.invoke(cli, ["progress", "--set", "read", "10"])
        result = runner.invoke(cli, ["momentum", "week"])
        assert result.exit_code == 0
        assert "Week momentum" in result.output

        result = runner.invoke(cli, ["momentum", "day"])
        assert result.exit_code == 0
        # overrides are not ledger entries, so the chart stays empty
        assert "No progress logged" in result.output

    def test_no_intentions(self, runner, patch_components):
        result = runner.invoke(cli, ["momentum", "week"])
        assert "No intentions active" in result.output


# -- Extraction --


class TestExtractCommands:
    def test_extract_session(self, runner, patch_components, provider, tmp_path):
        provider.generate.return_value = json.dumps(
            {"items": [{"type": "intention", "title": "Workout", "categories": ["fitness_health"], "confidence": 0.9}]}
        )
        transcript = tmp_path / "t.txt"
        transcript.write_text("I want to hit the gym.\n\nAnd the gym again tomorrow.")

        result = runner.invoke(cli, ["extract", str(transcript), "--session", "s1"])
        assert result.exit_code == 0
        assert len(patch_components["item_store"].list_items("s1")) == 2
        assert patch_components["topic_store"].get("workout").occurrence_count == 2

        result = runner.invoke(cli, ["topics"])
        assert result.exit_code == 0
        assert "Workout" in result.output

    def test_extract_empty_file(self, runner, patch_components, provider, tmp_path):
        transcript = tmp_path / "t.txt"
        transcript.write_text("   ")
        result = runner.invoke(cli, ["extract", str(transcript)])
        assert result.exit_code == 0
        assert "empty" in result.output
        provider.generate.assert_not_called()

    def test_review_and_correct(self, runner, patch_components, provider, tmp_path):
        provider.generate.return_value = json.dumps({"items": [{"type": "state", "title": "Tired"}]})
        transcript = tmp_path / "t.txt"
        transcript.write_text("so tired")
        runner.invoke(cli, ["extract", str(transcript), "--session", "s1", "--segment", "seg000"])
        [item] = patch_components["item_store"].list_items("s1")

        result = runner.invoke(cli, ["review", item.id, "kept"])
        assert result.exit_code == 0
        assert patch_components["item_store"].get_item(item.id).review_state == "kept"

        result = runner.invoke(cli, ["correct", item.id, "--incorrect", "--categories", "stress_load, peace_wellbeing"])
        assert result.exit_code == 0
        correction = patch_components["item_store"].get_correction(item.id)
        assert correction.is_incorrect
        assert correction.corrected_categories == ["stress_load", "peace_wellbeing"]

    def test_review_unknown(self, runner, patch_components):
        result = runner.invoke(cli, ["review", "nope", "dismissed"])
        assert result.exit_code == 1
