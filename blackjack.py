from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional, Tuple
import random
import logging

from basic_strategy import Action, StrategyTable
from betting import Player

logger = logging.getLogger(__name__)

SUITS = ['♠', '♣', '♥', '♦']
RANK_LABELS = {1: 'A', 11: 'J', 12: 'Q', 13: 'K'}

class GameResult(Enum):
    WIN = "WIN"
    LOSS = "LOSS"
    PUSH = "PUSH"

class RoundState(Enum):
    NOT_STARTED = auto()
    DEALING = auto()
    PLAYER_TURN = auto()
    DEALER_TURN = auto()
    SETTLING = auto()
    COMPLETE = auto()

class GameError(Exception):
    """Custom exception for game-related errors"""
    pass

class InvalidHandIndexError(GameError, IndexError):
    """Raised when a sub-hand index does not exist"""
    pass

class CannotSplitError(GameError):
    """Raised when a split is requested on a hand that cannot be split"""
    pass

@dataclass
class BlackjackRules:
    number_of_decks: int = 6
    blackjack_payout: float = 1.5  # 3:2 payout
    dealer_hits_soft_17: bool = True
    allow_resplit: bool = False
    allow_double_after_split: bool = True
    max_hands: int = 4  # Only consulted when resplitting is allowed
    shuffle_point_range: Tuple[int, int] = (15, 20)  # Percent of the full shoe

@dataclass(frozen=True)
class Card:
    suit: str
    rank: int

    def __str__(self):
        return f"{RANK_LABELS.get(self.rank, str(self.rank))}{self.suit}"

    def get_value(self) -> int:
        if self.rank == 1:
            return 11
        if self.rank > 10:
            return 10
        return self.rank

    @property
    def is_ace(self) -> bool:
        return self.rank == 1

    @property
    def strategy_rank(self) -> int:
        """Rank as used by the strategy chart: faces count as 10, Ace stays 1."""
        return min(self.rank, 10)

class Shoe:
    """
    Multi-deck shoe that is rebuilt and reshuffled once the number of undealt
    cards drops to the shuffle point.

    The shuffle point is drawn again at every shuffle, uniformly between 15%
    and 20% (by default) of the full shoe, both bounds truncated to integers.
    """

    def __init__(self, num_decks: int = 6, rng: Optional[random.Random] = None,
                 shuffle_point_range: Tuple[int, int] = (15, 20)):
        if num_decks < 1:
            raise ValueError(f"Shoe needs at least one deck, got {num_decks}")
        self.num_decks = num_decks
        self.rng = rng or random.Random()
        self.shuffle_point_range = shuffle_point_range
        self.cards: List[Card] = []
        self.shuffle_point = 0
        self.shuffle()

    @property
    def total_cards(self) -> int:
        return self.num_decks * 52

    def _build(self):
        self.cards = [Card(suit, rank) for _ in range(self.num_decks)
                      for suit in SUITS for rank in range(1, 14)]

    def shuffle(self):
        # Previous contents are discarded, never merged into the new shoe
        self.cards.clear()
        self._build()
        total = len(self.cards)
        low, high = self.shuffle_point_range
        self.shuffle_point = self.rng.randint(total * low // 100, total * high // 100)
        self.rng.shuffle(self.cards)
        logger.info(f"Shoe shuffled. {total} cards in play, shuffle point {self.shuffle_point}.")

    def needs_shuffle(self) -> bool:
        return self.cards_remaining() <= self.shuffle_point

    def deal_card(self) -> Optional[Card]:
        if not self.cards:
            return None
        return self.cards.pop()

    def cards_remaining(self) -> int:
        return len(self.cards)

class Hand:
    def __init__(self, bet: float = 0.0):
        self.cards: List[Card] = []
        self.bet = bet
        self.is_split = False
        self.is_doubled = False

    def add_card(self, card: Card):
        self.cards.append(card)

    def _evaluate(self) -> Tuple[int, int]:
        """Total with aces counted as 11 until that busts, and how many still count 11."""
        value = sum(card.get_value() for card in self.cards)
        soft_aces = sum(1 for card in self.cards if card.is_ace)
        while value > 21 and soft_aces > 0:
            value -= 10
            soft_aces -= 1
        return value, soft_aces

    def get_value(self) -> int:
        return self._evaluate()[0]

    def is_soft(self) -> bool:
        value, soft_aces = self._evaluate()
        return soft_aces > 0 and value <= 21

    def is_blackjack(self) -> bool:
        return len(self.cards) == 2 and self.get_value() == 21

    def is_bust(self) -> bool:
        return self.get_value() > 21

    def is_pair(self) -> bool:
        return len(self.cards) == 2 and self.cards[0].rank == self.cards[1].rank

    def get_strategy_key(self) -> int:
        """
        Categorise the hand for a strategy chart lookup.

        Pairs map to 200 + rank (201 for aces, 210 for tens and faces), soft
        two-card hands to 100 + the rank of the non-ace card, and everything
        else to its total.
        """
        if self.is_pair():
            return 200 + self.cards[0].strategy_rank
        if len(self.cards) == 2 and self.is_soft():
            other = next(card for card in self.cards if not card.is_ace)
            return 100 + other.strategy_rank
        return self.get_value()

    def get_status(self) -> str:
        status = []
        if self.is_bust():
            status.append("BUSTED")
        elif self.is_blackjack():
            status.append("BLACKJACK")
        else:
            status.append(f"{'Soft' if self.is_soft() else 'Hard'} {self.get_value()}")
        if self.is_split:
            status.append("(Split)")
        if self.is_doubled:
            status.append("(Doubled)")
        return " ".join(status)

    def __str__(self):
        return f"{' '.join(str(card) for card in self.cards)} - {self.get_status()}"

class PlayerHands:
    """The player's side of one round: one hand, plus one more per split."""

    def __init__(self, initial_bet: float):
        self.hands: List[Hand] = [Hand(initial_bet)]

    def __len__(self):
        return len(self.hands)

    def __iter__(self):
        return iter(self.hands)

    def __getitem__(self, hand_index: int) -> Hand:
        if not 0 <= hand_index < len(self.hands):
            raise InvalidHandIndexError(f"No hand at index {hand_index} (have {len(self.hands)})")
        return self.hands[hand_index]

    def add_card(self, hand_index: int, card: Card):
        self[hand_index].add_card(card)

    def can_split(self, hand_index: int, allow_resplit: bool = False) -> bool:
        hand = self[hand_index]
        return hand.is_pair() and (allow_resplit or not hand.is_split)

    def split(self, hand_index: int, allow_resplit: bool = False) -> int:
        """Move the second card to a new hand carrying the same bet. Returns its index."""
        if not self.can_split(hand_index, allow_resplit):
            raise CannotSplitError(f"Hand {hand_index} cannot be split: {self.hands[hand_index]}")
        original = self.hands[hand_index]
        sibling = Hand(original.bet)
        sibling.add_card(original.cards.pop())
        original.is_split = True
        sibling.is_split = True
        self.hands.append(sibling)
        return len(self.hands) - 1

    def set_doubled(self, hand_index: int):
        # The extra stake must already have been taken from the bankroll
        hand = self[hand_index]
        hand.is_doubled = True
        hand.bet *= 2

    def get_value(self, hand_index: int) -> int:
        return self[hand_index].get_value()

    def is_bust(self, hand_index: int) -> bool:
        return self[hand_index].is_bust()

    def is_blackjack(self, hand_index: int) -> bool:
        return self[hand_index].is_blackjack()

    def is_soft(self, hand_index: int) -> bool:
        return self[hand_index].is_soft()

    def is_pair(self, hand_index: int) -> bool:
        return self[hand_index].is_pair()

    def get_strategy_key(self, hand_index: int) -> int:
        return self[hand_index].get_strategy_key()

    def total_bet(self) -> float:
        return sum(hand.bet for hand in self.hands)

@dataclass
class HandOutcome:
    hand_number: int
    hand_index: int
    result: GameResult
    bet: float
    winnings: float
    bankroll: float
    player_value: int
    dealer_value: int
    is_doubled: bool = False
    is_split: bool = False

    @property
    def label(self) -> str:
        label = self.result.value
        if self.is_doubled:
            label += " (DOUBLE)"
        if self.is_split:
            label += " (SPLIT)"
        return label

    def __str__(self):
        return (f"Hand {self.hand_number} ({self.hand_index + 1}): {self.label} - "
                f"Bet: ${self.bet:.2f}, Winnings: ${self.winnings:.2f}, "
                f"Bankroll: ${self.bankroll:.2f} "
                f"(Player: {self.player_value}, Dealer: {self.dealer_value})")

@dataclass
class RoundResult:
    hand_number: int
    outcome: GameResult
    hand_results: List[HandOutcome]
    total_bet: float
    total_winnings: float
    bankroll: float
    dealer_hand: str
    player_hands: List[str]
    reshuffled: bool = False
    dead: bool = False
    wins: int = 0
    losses: int = 0
    pushes: int = 0

    @property
    def net(self) -> float:
        return self.total_winnings - self.total_bet

class Blackjack:
    """
    Plays complete rounds for a single strategy-driven player.

    The engine owns the shoe and the player's betting state; nothing is shared
    between engine instances.
    """

    def __init__(self, player: Player, strategy: StrategyTable,
                 rules: Optional[BlackjackRules] = None,
                 rng: Optional[random.Random] = None,
                 shoe: Optional[Shoe] = None):
        self.rules = rules or BlackjackRules()
        self.player = player
        self.strategy = strategy
        self.shoe = shoe or Shoe(self.rules.number_of_decks, rng,
                                 self.rules.shuffle_point_range)
        self.hands = PlayerHands(0.0)
        self.dealer_hand = Hand()
        self.round_state = RoundState.NOT_STARTED

    def get_dealer_upcard(self) -> Card:
        return self.dealer_hand.cards[0]

    def play_round(self, hand_number: int = 0) -> RoundResult:
        """Deal, play and settle one full round. Bankroll and bet are updated in place."""
        reshuffled = self._start_round()
        if not self._deal_initial_cards():
            return self._void_round(hand_number, reshuffled)

        self.round_state = RoundState.PLAYER_TURN
        dealer_up_rank = self.get_dealer_upcard().strategy_rank
        hand_index = 0
        # Split hands are appended, so the length is re-read on every pass
        while hand_index < len(self.hands):
            self._play_player_hand(hand_index, dealer_up_rank)
            hand_index += 1

        self.round_state = RoundState.DEALER_TURN
        if any(not hand.is_bust() for hand in self.hands):
            self._play_dealer_hand()

        return self._settle(hand_number, reshuffled)

    def _start_round(self) -> bool:
        self.round_state = RoundState.DEALING
        reshuffled = False
        if self.shoe.needs_shuffle():
            self.shoe.shuffle()
            reshuffled = True
        wager = self.player.place_bet()
        self.hands = PlayerHands(wager)
        self.dealer_hand = Hand()
        return reshuffled

    def _deal_initial_cards(self) -> bool:
        """Deal player, dealer, player, dealer. Returns False if the shoe ran dry."""
        for _ in range(2):
            for hand in (self.hands[0], self.dealer_hand):
                card = self.shoe.deal_card()
                if card is None:
                    return False
                hand.add_card(card)
        return True

    def _can_afford(self, amount: float) -> bool:
        return self.player.bankroll >= amount

    def _hit(self, hand_index: int) -> bool:
        card = self.shoe.deal_card()
        if card is None:
            return False
        self.hands.add_card(hand_index, card)
        return True

    def _play_player_hand(self, hand_index: int, dealer_up_rank: int):
        while self.hands.get_value(hand_index) < 21:
            hand = self.hands[hand_index]
            action = self.strategy.get_action(hand.get_strategy_key(), dealer_up_rank)

            if action is Action.STAND:
                return

            if action is Action.DOUBLE:
                if hand.is_split and not self.rules.allow_double_after_split:
                    if not self._hit(hand_index):
                        return
                    continue
                if self._can_afford(hand.bet):
                    self.player.charge(hand.bet)
                    self.hands.set_doubled(hand_index)
                self._hit(hand_index)
                return

            if action is Action.SPLIT and self._can_split(hand_index):
                self.player.charge(hand.bet)
                new_index = self.hands.split(hand_index, self.rules.allow_resplit)
                self._hit(hand_index)
                self._hit(new_index)
                continue

            # Hit, or a split that is not allowed or not affordable
            if not self._hit(hand_index):
                return

    def _can_split(self, hand_index: int) -> bool:
        if not self.hands.can_split(hand_index, self.rules.allow_resplit):
            return False
        if self.rules.allow_resplit and len(self.hands) >= self.rules.max_hands:
            return False
        return self._can_afford(self.hands[hand_index].bet)

    def _play_dealer_hand(self):
        while True:
            value = self.dealer_hand.get_value()
            if value > 17:
                break
            if value == 17 and not (self.rules.dealer_hits_soft_17 and self.dealer_hand.is_soft()):
                break
            card = self.shoe.deal_card()
            if card is None:
                break
            self.dealer_hand.add_card(card)

    def resolve_hand(self, hand: Hand) -> Tuple[GameResult, float]:
        """Resolve a single hand against the dealer and return result with amount returned"""
        dealer_blackjack = self.dealer_hand.is_blackjack()
        player_blackjack = hand.is_blackjack()
        blackjack_return = hand.bet * (1 + self.rules.blackjack_payout)

        if hand.is_bust():
            return GameResult.LOSS, 0.0
        if self.dealer_hand.is_bust():
            return GameResult.WIN, blackjack_return if player_blackjack else hand.bet * 2
        if player_blackjack and dealer_blackjack:
            return GameResult.PUSH, hand.bet
        if player_blackjack:
            return GameResult.WIN, blackjack_return
        if dealer_blackjack:
            return GameResult.LOSS, 0.0

        player_value = hand.get_value()
        dealer_value = self.dealer_hand.get_value()
        if player_value > dealer_value:
            return GameResult.WIN, hand.bet * 2
        if player_value < dealer_value:
            return GameResult.LOSS, 0.0
        return GameResult.PUSH, hand.bet

    def _settle(self, hand_number: int, reshuffled: bool) -> RoundResult:
        self.round_state = RoundState.SETTLING
        dealer_value = self.dealer_hand.get_value()
        hand_results = []
        total_winnings = 0.0
        counts = {GameResult.WIN: 0, GameResult.LOSS: 0, GameResult.PUSH: 0}

        for index, hand in enumerate(self.hands):
            result, amount = self.resolve_hand(hand)
            counts[result] += 1
            total_winnings += amount
            outcome = HandOutcome(
                hand_number=hand_number,
                hand_index=index,
                result=result,
                bet=hand.bet,
                winnings=amount,
                bankroll=self.player.bankroll + total_winnings,
                player_value=hand.get_value(),
                dealer_value=dealer_value,
                is_doubled=hand.is_doubled,
                is_split=hand.is_split
            )
            logger.debug(str(outcome))
            hand_results.append(outcome)

        wins, losses = counts[GameResult.WIN], counts[GameResult.LOSS]
        if wins > losses:
            round_outcome = GameResult.WIN
        elif losses > wins:
            round_outcome = GameResult.LOSS
        else:
            round_outcome = GameResult.PUSH

        return self._complete(RoundResult(
            hand_number=hand_number,
            outcome=round_outcome,
            hand_results=hand_results,
            total_bet=self.hands.total_bet(),
            total_winnings=total_winnings,
            bankroll=0.0,
            dealer_hand=str(self.dealer_hand),
            player_hands=[str(hand) for hand in self.hands],
            reshuffled=reshuffled,
            wins=wins,
            losses=losses,
            pushes=counts[GameResult.PUSH]
        ))

    def _void_round(self, hand_number: int, reshuffled: bool) -> RoundResult:
        """Handle a round whose initial deal could not complete: refund the wager."""
        logger.warning(f"Shoe exhausted during the initial deal of hand {hand_number}; bet returned")
        self.round_state = RoundState.SETTLING
        wager = self.hands.total_bet()
        return self._complete(RoundResult(
            hand_number=hand_number,
            outcome=GameResult.PUSH,
            hand_results=[],
            total_bet=wager,
            total_winnings=wager,
            bankroll=0.0,
            dealer_hand=str(self.dealer_hand),
            player_hands=[str(hand) for hand in self.hands],
            reshuffled=reshuffled,
            dead=True
        ))

    def _complete(self, result: RoundResult) -> RoundResult:
        self.player.credit(result.total_winnings)
        self.player.record_results(result.wins, result.losses, result.pushes)
        if result.outcome is GameResult.WIN:
            self.player.update_bet_after_win()
        elif result.outcome is GameResult.LOSS:
            self.player.reset_bet_after_loss()
        else:
            self.player.record_push()
        result.bankroll = self.player.bankroll
        logger.debug(f"Round {result.hand_number} Summary: Total Bet: ${result.total_bet:.2f}, "
                     f"Total Winnings: ${result.total_winnings:.2f}, Net: ${result.net:.2f}")
        self.round_state = RoundState.COMPLETE
        return result
