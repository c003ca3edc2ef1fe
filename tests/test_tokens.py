import random

import pytest
import requests

import tokens
from classes import SupplierFailure
from tokens import PokemonSupplier


class _FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


def _species(*names):
    return {"results": [{"name": name, "url": f"https://pokeapi.co/{name}"} for name in names]}


def _patch_get(monkeypatch, response):
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append((url, params, timeout))
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(tokens.requests, "get", fake_get)
    return calls


def test_fetch_tokens_picks_distinct_names(monkeypatch):
    calls = _patch_get(monkeypatch, _FakeResponse(_species("pikachu", "eevee", "mew", "onix", "abra")))
    supplier = PokemonSupplier(rng=random.Random(1))

    result = supplier(3)

    assert len(result) == 3
    assert len({token.name for token in result}) == 3
    for token in result:
        assert token.image_url == f"https://img.pokemondb.net/artwork/large/{token.name}.jpg"
    assert calls == [("https://pokeapi.co/api/v2/pokemon", {"limit": 1000}, 5)]


def test_fetch_tokens_uses_settings(monkeypatch):
    calls = _patch_get(monkeypatch, _FakeResponse(_species("pikachu", "eevee")))
    settings = {
        "api_url": "http://localhost:8000/pokemon",
        "image_url": "http://localhost:8000/img/{name}.png",
        "species_limit": 2,
        "request_timeout": 1,
    }

    result = tokens.fetch_tokens(2, settings)

    assert sorted(token.image_url for token in result) == [
        "http://localhost:8000/img/eevee.png",
        "http://localhost:8000/img/pikachu.png",
    ]
    assert calls == [("http://localhost:8000/pokemon", {"limit": 2}, 1)]


def test_duplicate_species_are_collapsed(monkeypatch):
    _patch_get(monkeypatch, _FakeResponse(_species("pikachu", "pikachu", "eevee")))

    assert PokemonSupplier().fetch_names() == ["pikachu", "eevee"]


def test_too_few_species_is_a_failure(monkeypatch):
    _patch_get(monkeypatch, _FakeResponse(_species("pikachu", "eevee")))

    with pytest.raises(SupplierFailure):
        PokemonSupplier().fetch_tokens(3)


@pytest.mark.parametrize("response", [
    requests.exceptions.ConnectionError("refused"),
    requests.exceptions.Timeout("slow"),
    _FakeResponse({}, status_code=503),
    _FakeResponse(ValueError("not json")),
    _FakeResponse({"unexpected": []}),
    _FakeResponse({"results": [{"no_name": 1}]}),
])
def test_network_and_payload_errors_become_supplier_failure(monkeypatch, response):
    _patch_get(monkeypatch, response)

    with pytest.raises(SupplierFailure):
        PokemonSupplier().fetch_tokens(1)
