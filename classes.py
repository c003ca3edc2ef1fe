import random
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional


class SupplierFailure(Exception):
    """Raised when the token supplier cannot provide tokens for a round."""


class QuotaExceeded(Exception):
    """
    Raised when the player asks for more power-ups than the difficulty allows.
    The message is meant to be shown to the player as-is.
    """

    WORDS = {1: "once", 2: "twice", 3: "three times"}

    def __init__(self, quota, difficulty_name):
        self.quota = quota
        self.difficulty_name = difficulty_name
        times = self.WORDS.get(quota, f"{quota} times")
        super().__init__(
            f"You can only use Power-Up {times} in {difficulty_name.capitalize()} mode."
        )


@dataclass(frozen=True)
class Token:
    """The matching unit shared by exactly two cards on a board."""
    name: str
    image_url: str = ""


@dataclass(frozen=True)
class Difficulty:
    """Static settings for one difficulty level."""
    name: str
    pair_count: int
    time_limit: int
    power_up_quota: int

    def describe(self):
        """Return the one-line summary shown on the start screen."""
        return (f"{self.name.capitalize()} Mode: Match {self.pair_count} pairs "
                f"within {self.time_limit} seconds.")


DIFFICULTIES: Dict[str, Difficulty] = {
    "easy": Difficulty("easy", pair_count=6, time_limit=90, power_up_quota=1),
    "medium": Difficulty("medium", pair_count=10, time_limit=60, power_up_quota=2),
    "hard": Difficulty("hard", pair_count=15, time_limit=45, power_up_quota=3),
}


def get_difficulty(name) -> Difficulty:
    """
    Look up a difficulty level by name.

    Args:
        name: One of "easy", "medium" or "hard" (case-insensitive)

    Returns:
        The matching Difficulty

    Raises:
        ValueError: If the name is not a known level
    """
    try:
        return DIFFICULTIES[str(name).lower()]
    except KeyError:
        raise ValueError(f"Unknown difficulty: {name!r}") from None


class Card:
    """
    A single slot on the board. Each card references one token and can be
    face up or face down, matched or unmatched.
    """

    def __init__(self, token, card_id):
        """
        Initialize a new card.

        Args:
            token: The Token shown when the card is face up
            card_id: Opaque identifier used by the presentation layer
        """
        self.token = token
        self.card_id = card_id
        self.is_face_up = False
        self.is_matched = False

    @property
    def name(self):
        return self.token.name

    def matches(self, other):
        """Return True if both cards show the same token."""
        return self.token == other.token

    def __str__(self):
        status = "matched" if self.is_matched else "face up" if self.is_face_up else "face down"
        return f"Card({self.token.name}, {status})"

    def __repr__(self):
        return (f"Card(token={self.token.name!r}, card_id={self.card_id}, "
                f"is_face_up={self.is_face_up}, is_matched={self.is_matched})")


class Board:
    """
    The ordered deck of cards for one round.
    Holds two cards per token, shuffled once when the board is built.
    """

    def __init__(self, tokens, rng: Optional[random.Random] = None):
        """
        Build a board from a sequence of tokens.

        Args:
            tokens: Tokens to create pairs from
            rng: Optional random.Random used for the shuffle

        Raises:
            ValueError: If no tokens are given or a token name repeats
        """
        tokens = list(tokens)
        if not tokens:
            raise ValueError("Cannot build a board without tokens")

        names = [token.name for token in tokens]
        if len(set(names)) != len(names):
            raise ValueError("Token names must be unique")

        # Two consecutive cards per token, then shuffle
        card_list = []
        for i, token in enumerate(tokens):
            card_list.append(Card(token, card_id=i * 2))
            card_list.append(Card(token, card_id=i * 2 + 1))

        (rng or random).shuffle(card_list)

        self.tokens = tokens
        self.cards: List[Card] = card_list
        self._by_id = {card.card_id: card for card in card_list}

    @property
    def pair_count(self):
        return len(self.tokens)

    def get_card(self, card_id) -> Optional[Card]:
        """
        Get a card by its ID.

        Args:
            card_id: The ID of the card to find

        Returns:
            The Card, or None if no card has that ID
        """
        return self._by_id.get(card_id)

    def is_matched(self, card_id) -> bool:
        card = self.get_card(card_id)
        return card is not None and card.is_matched

    def is_face_up(self, card_id) -> bool:
        card = self.get_card(card_id)
        return card is not None and card.is_face_up

    def cards_for(self, token) -> List[Card]:
        """Return the two cards that reference the given token."""
        return [card for card in self.cards if card.token == token]

    def unmatched_cards(self) -> List[Card]:
        return [card for card in self.cards if not card.is_matched]

    def face_up_unmatched(self) -> List[Card]:
        return [card for card in self.cards if card.is_face_up and not card.is_matched]

    def all_matched(self) -> bool:
        """Check if all pairs have been matched."""
        return all(card.is_matched for card in self.cards)

    def __len__(self):
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self):
        """Return a one-line text rendering of the board."""
        result = []
        for card in self.cards:
            if card.is_matched:
                result.append("M")
            elif card.is_face_up:
                result.append(card.token.name)
            else:
                result.append("#")
        return " ".join(result)
