"""
Settings management for the memory match game.
Settings live in a small JSON file next to the game.
"""
import json
import os

SETTINGS_FILE = "settings.json"

DEFAULT_SETTINGS = {
    "difficulty": "easy",
    "api_url": "https://pokeapi.co/api/v2/pokemon",
    "image_url": "https://img.pokemondb.net/artwork/large/{name}.jpg",
    "species_limit": 1000,
    "request_timeout": 5,
}


def load_settings(path=SETTINGS_FILE):
    """
    Load settings from a JSON file.

    Missing keys are filled from DEFAULT_SETTINGS. A missing or unreadable
    file gives the defaults.
    """
    settings = dict(DEFAULT_SETTINGS)
    if os.path.exists(path):
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            print(f"Could not read {path}: {e}. Using default settings")
            return settings
        if isinstance(data, dict):
            settings.update(data)
    return settings


def save_settings(settings, path=SETTINGS_FILE):
    """Save settings to a JSON file."""
    with open(path, 'w') as f:
        json.dump(settings, f, indent=2)
