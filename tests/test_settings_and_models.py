import json

from settings import DEFAULT_SETTINGS, load_settings, save_settings
from shared.models import LOST, WON, RoundSummary


def test_missing_settings_file_gives_defaults(tmp_path):
    assert load_settings(tmp_path / "settings.json") == DEFAULT_SETTINGS


def test_saved_settings_are_merged_over_defaults(tmp_path):
    path = tmp_path / "settings.json"
    save_settings({"difficulty": "hard"}, path)

    settings = load_settings(path)

    assert settings["difficulty"] == "hard"
    assert settings["api_url"] == DEFAULT_SETTINGS["api_url"]


def test_corrupt_settings_file_gives_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json")

    assert load_settings(path) == DEFAULT_SETTINGS


def test_save_settings_writes_json(tmp_path):
    path = tmp_path / "settings.json"
    save_settings({"difficulty": "medium", "request_timeout": 2}, path)

    assert json.loads(path.read_text()) == {"difficulty": "medium", "request_timeout": 2}


def test_round_summary_dict_round_trip():
    summary = RoundSummary(
        difficulty="medium", outcome=WON, clicks=34, matched_pairs=10,
        total_pairs=10, time_left=12, time_limit=60, power_ups_used=2,
    )

    assert RoundSummary.from_dict(summary.to_dict()) == summary
    assert summary.won
    assert summary.elapsed_seconds == 48
    assert summary.pairs_left == 0


def test_round_summary_from_partial_dict():
    summary = RoundSummary.from_dict({"difficulty": "easy", "matched_pairs": 2, "total_pairs": 6})

    assert summary.outcome == LOST
    assert not summary.won
    assert summary.pairs_left == 4
    assert summary.power_ups_used == 0
