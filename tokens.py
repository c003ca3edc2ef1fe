"""
Token supplier backed by PokeAPI.

Downloads the species list once per call, picks distinct names at random and
pairs each with its artwork URL.
"""
import random
from typing import List

import requests

from classes import SupplierFailure, Token
from settings import DEFAULT_SETTINGS


class PokemonSupplier:
    """Callable that returns `count` random Pokemon tokens."""

    def __init__(self, api_url=None, image_url=None, species_limit=None, timeout=None, rng=None):
        self.api_url = api_url or DEFAULT_SETTINGS["api_url"]
        self.image_url = image_url or DEFAULT_SETTINGS["image_url"]
        self.species_limit = species_limit or DEFAULT_SETTINGS["species_limit"]
        self.timeout = timeout or DEFAULT_SETTINGS["request_timeout"]
        self.rng = rng or random.Random()

    @classmethod
    def from_settings(cls, settings):
        return cls(
            api_url=settings.get("api_url"),
            image_url=settings.get("image_url"),
            species_limit=settings.get("species_limit"),
            timeout=settings.get("request_timeout"),
        )

    def fetch_names(self) -> List[str]:
        """
        Get the list of species names from the API.

        Raises:
            SupplierFailure: On any network error or unexpected payload
        """
        print(f"Fetching species list from {self.api_url}")
        try:
            response = requests.get(
                self.api_url,
                params={"limit": self.species_limit},
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            print(f"Error fetching species list: {e}")
            raise SupplierFailure(f"Could not reach {self.api_url}") from e
        except ValueError as e:
            raise SupplierFailure("Species list is not valid JSON") from e

        try:
            names = [entry["name"] for entry in data["results"]]
        except (KeyError, TypeError) as e:
            raise SupplierFailure("Species list has an unexpected format") from e
        # Some species appear more than once in the listing
        return list(dict.fromkeys(names))

    def fetch_tokens(self, count) -> List[Token]:
        """
        Pick `count` distinct species at random.

        Raises:
            SupplierFailure: If the list cannot be fetched or is too short
        """
        names = self.fetch_names()
        if len(names) < count:
            raise SupplierFailure(f"Need {count} species but only {len(names)} are available")
        selected = self.rng.sample(names, count)
        return [Token(name, self.image_url.format(name=name)) for name in selected]

    def __call__(self, count):
        return self.fetch_tokens(count)


def fetch_tokens(count, settings=None) -> List[Token]:
    """Fetch `count` tokens using the given settings (or the defaults)."""
    return PokemonSupplier.from_settings(settings or DEFAULT_SETTINGS).fetch_tokens(count)
