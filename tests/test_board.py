import random
from collections import Counter

import pytest

from classes import Board, Card, Token, DIFFICULTIES, get_difficulty


def _tokens(count):
    return [Token(f"mon{i}", f"https://img.example/mon{i}.jpg") for i in range(count)]


def test_board_has_two_cards_per_token():
    board = Board(_tokens(6), rng=random.Random(1))

    assert len(board) == 12
    counts = Counter(card.token for card in board)
    assert len(counts) == 6
    assert set(counts.values()) == {2}


def test_board_card_ids_are_unique_and_stable():
    board = Board(_tokens(4), rng=random.Random(3))

    assert sorted(card.card_id for card in board) == list(range(8))
    for card in board:
        assert board.get_card(card.card_id) is card


def test_board_is_shuffled_with_given_rng():
    first = Board(_tokens(10), rng=random.Random(42))
    second = Board(_tokens(10), rng=random.Random(42))

    assert [c.card_id for c in first] == [c.card_id for c in second]
    assert [c.card_id for c in first] != list(range(20))


def test_shuffle_reaches_every_ordering_of_a_small_board():
    rng = random.Random(0)
    seen = set()
    for _ in range(500):
        board = Board(_tokens(2), rng=rng)
        seen.add(tuple(card.card_id for card in board))

    assert len(seen) == 24


def test_board_rejects_empty_tokens():
    with pytest.raises(ValueError):
        Board([])


def test_board_rejects_duplicate_token_names():
    with pytest.raises(ValueError):
        Board([Token("pikachu"), Token("pikachu")])


def test_new_cards_are_face_down_and_unmatched():
    board = Board(_tokens(3))

    assert not any(board.is_face_up(c.card_id) for c in board)
    assert not any(board.is_matched(c.card_id) for c in board)
    assert not board.all_matched()
    assert str(board) == " ".join(["#"] * 6)


def test_queries_on_unknown_card_are_false():
    board = Board(_tokens(1))

    assert board.get_card(99) is None
    assert not board.is_matched(99)
    assert not board.is_face_up(99)


def test_face_up_unmatched_ignores_matched_cards():
    board = Board(_tokens(2), rng=random.Random(5))
    a, b = board.cards_for(board.tokens[0])
    a.is_face_up = b.is_face_up = True
    a.is_matched = b.is_matched = True
    c = board.cards_for(board.tokens[1])[0]
    c.is_face_up = True

    assert board.face_up_unmatched() == [c]
    assert len(board.unmatched_cards()) == 2


def test_card_matches_on_token():
    pikachu = Token("pikachu")
    assert Card(pikachu, 0).matches(Card(pikachu, 1))
    assert not Card(pikachu, 0).matches(Card(Token("bulbasaur"), 2))


def test_difficulty_table():
    assert [(d.pair_count, d.time_limit, d.power_up_quota) for d in DIFFICULTIES.values()] == [
        (6, 90, 1), (10, 60, 2), (15, 45, 3)
    ]
    assert get_difficulty("Medium") is DIFFICULTIES["medium"]
    assert DIFFICULTIES["easy"].describe() == "Easy Mode: Match 6 pairs within 90 seconds."


def test_unknown_difficulty():
    with pytest.raises(ValueError):
        get_difficulty("nightmare")
