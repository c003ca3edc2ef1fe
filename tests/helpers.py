from classes import SupplierFailure, Token

NAMES = [
    "pikachu", "bulbasaur", "charmander", "squirtle", "eevee", "snorlax",
    "jigglypuff", "meowth", "psyduck", "gengar", "onix", "mew",
    "lapras", "ditto", "vulpix", "machop", "abra", "geodude",
]


class FakeClock:
    def __init__(self) -> None:
        self.value = 0.0

    def advance(self, amount: float) -> None:
        self.value += amount

    def __call__(self) -> float:
        return self.value


class StaticSupplier:
    """Hands out the first `count` names and remembers how often it was called."""

    def __init__(self, names=NAMES):
        self.names = list(names)
        self.calls = []
        self.fail = False

    def __call__(self, count):
        self.calls.append(count)
        if self.fail:
            raise SupplierFailure("network down")
        return [Token(name, f"https://img.example/{name}.jpg") for name in self.names[:count]]


def advance(game, clock, seconds):
    """Move the fake clock forward and let the engine catch up."""
    clock.advance(seconds)
    return game.update()


def pair_for(game, name):
    token = next(t for t in game.board.tokens if t.name == name)
    first, second = game.board.cards_for(token)
    return first, second


def mismatched_cards(game):
    first = game.board.cards[0]
    second = next(c for c in game.board.cards if not c.matches(first))
    return first, second


def match_all(game):
    for token in game.board.tokens:
        first, second = game.board.cards_for(token)
        game.flip(first.card_id)
        game.flip(second.card_id)
