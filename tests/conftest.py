import random

import pytest

from basic_strategy import StrategyTable
from betting import BettingStrategy, Player
from blackjack import Blackjack, Card, Hand


@pytest.fixture
def cards():
    """Build cards from ranks (1 = Ace, 11-13 = faces)."""
    def _cards(*ranks):
        return [Card('♠', rank) for rank in ranks]
    return _cards


@pytest.fixture
def hand(cards):
    def _hand(*ranks, bet=10.0):
        h = Hand(bet)
        for card in cards(*ranks):
            h.add_card(card)
        return h
    return _hand


@pytest.fixture
def strategy():
    return StrategyTable.default()


@pytest.fixture
def stack_shoe(cards):
    """Arrange a shoe so cards come off the top in the given order."""
    def _stack(shoe, ranks, shuffle_point=0):
        shoe.cards = list(reversed(cards(*ranks)))
        shoe.shuffle_point = shuffle_point
        return shoe
    return _stack


@pytest.fixture
def make_game(strategy, stack_shoe):
    def _make(ranks, bankroll=1000.0, minimum=10.0,
              betting=BettingStrategy.FLAT, rules=None):
        player = Player(bankroll, minimum, betting)
        game = Blackjack(player, strategy, rules, rng=random.Random(7))
        stack_shoe(game.shoe, ranks)
        return game
    return _make
