from blackjack import Blackjack, BlackjackRules, GameError, RoundResult
from basic_strategy import StrategyTable
from betting import BettingStrategy, Player
from typing import Iterator, List, Optional
from dataclasses import dataclass, field, asdict, fields, replace
from concurrent.futures import ProcessPoolExecutor, as_completed
from enum import Enum
from tqdm import tqdm
import hashlib
import random
import time
import csv
import logging

logger = logging.getLogger(__name__)

VALID_DECK_COUNTS = (2, 6)

class ConfigurationError(GameError, ValueError):
    """Raised for run settings that cannot produce a simulation"""
    pass

class StopReason(Enum):
    HANDS_COMPLETE = "hands_complete"
    BELOW_MINIMUM = "below_minimum"
    QUIT_THRESHOLD = "quit_threshold"
    BANKRUPT = "bankrupt"

@dataclass
class SimulationConfig:
    num_hands: int
    starting_bankroll: float = 1000.0
    table_minimum: float = 10.0
    num_decks: int = 6
    betting_strategy: BettingStrategy = BettingStrategy.INCREASE_AFTER_WIN
    quit_threshold: float = 2000.0
    seed: Optional[str] = None
    attempts: int = 1
    processes: int = 1
    rules: BlackjackRules = field(default_factory=BlackjackRules)

    def __post_init__(self):
        # The deck count lives in both places; the run setting wins
        self.rules = replace(self.rules, number_of_decks=self.num_decks)

    def validate(self):
        if self.num_hands < 1:
            raise ConfigurationError("Number of hands must be at least 1")
        if self.num_decks not in VALID_DECK_COUNTS:
            raise ConfigurationError("Number of decks must be 2 or 6")
        if self.attempts < 1:
            raise ConfigurationError("Number of attempts must be at least 1")
        if self.processes < 1:
            raise ConfigurationError("Number of processes must be at least 1")
        if self.table_minimum <= 0:
            raise ConfigurationError("Table minimum must be positive")
        if self.starting_bankroll <= 0:
            raise ConfigurationError("Starting bankroll must be positive")
        if not isinstance(self.betting_strategy, BettingStrategy):
            raise ConfigurationError(f"Unknown betting strategy {self.betting_strategy!r}")

@dataclass
class AttemptSummary:
    attempt: int
    total_hands: int
    wins: int
    losses: int
    pushes: int
    max_bet: float
    net_winnings: float
    final_bankroll: float
    starting_bankroll: float
    stop_reason: str

    @property
    def win_rate(self) -> float:
        return self.wins / self.total_hands if self.total_hands else 0.0

def make_rng(seed: Optional[str], attempt: int) -> random.Random:
    """
    Build the generator for one attempt.

    With a seed string the stream depends only on (seed, attempt); without
    one it is mixed from the clock so every attempt gets a different stream.
    """
    if seed is not None:
        material = f"{seed}:{attempt}"
    else:
        material = f"{time.time_ns()}:{attempt}"
    digest = hashlib.sha256(material.encode("utf-8")).digest()
    return random.Random(int.from_bytes(digest[:8], "big"))

class BlackjackSimulator:
    def __init__(self, config: SimulationConfig, strategy: Optional[StrategyTable] = None,
                 progress: bool = False):
        self.config = config
        self.strategy = strategy or StrategyTable.default()
        self.progress = progress

    def create_game(self, attempt: int) -> Blackjack:
        player = Player(self.config.starting_bankroll, self.config.table_minimum,
                        self.config.betting_strategy)
        return Blackjack(player, self.strategy, self.config.rules,
                         rng=make_rng(self.config.seed, attempt))

    def _stop_reason(self, player: Player) -> Optional[StopReason]:
        if player.bankroll <= 0:
            return StopReason.BANKRUPT
        if player.bankroll < self.config.table_minimum:
            return StopReason.BELOW_MINIMUM
        if player.bankroll >= self.config.quit_threshold:
            return StopReason.QUIT_THRESHOLD
        return None

    def play_rounds(self, game: Blackjack) -> Iterator[RoundResult]:
        """Yield each round of one attempt until the hand count or a bankroll limit stops it."""
        for hand_number in range(self.config.num_hands):
            if self._stop_reason(game.player) is not None:
                return
            yield game.play_round(hand_number)

    def run_attempt(self, attempt: int) -> AttemptSummary:
        """Play one attempt to completion and summarise it"""
        game = self.create_game(attempt)
        player = game.player
        logger.info(f"Running simulation attempt {attempt + 1}/{self.config.attempts}")

        hands_played = 0
        rounds = tqdm(self.play_rounds(game), total=self.config.num_hands, desc="Hands",
                      leave=False, disable=not self.progress or self.config.processes > 1)
        for result in rounds:
            hands_played += 1
            if result.reshuffled:
                logger.debug(f"Shoe reshuffled before hand {result.hand_number}")

        if hands_played < self.config.num_hands:
            stop_reason = self._stop_reason(player)
        else:
            stop_reason = StopReason.HANDS_COMPLETE

        summary = AttemptSummary(
            attempt=attempt,
            total_hands=hands_played,
            wins=player.wins,
            losses=player.losses,
            pushes=player.pushes,
            max_bet=player.max_bet,
            net_winnings=player.bankroll - self.config.starting_bankroll,
            final_bankroll=player.bankroll,
            starting_bankroll=self.config.starting_bankroll,
            stop_reason=stop_reason.value
        )
        logger.info(f"Attempt {attempt + 1} finished after {hands_played:,} hands "
                    f"({stop_reason.value}). Final bankroll: ${player.bankroll:,.2f}")
        return summary

    def run(self) -> List[AttemptSummary]:
        """Run every attempt and return the summaries in attempt order"""
        self.config.validate()
        attempts = range(self.config.attempts)
        logger.info(f"Starting {self.config.attempts} simulation attempt(s) of "
                    f"{self.config.num_hands:,} hands using {self.config.processes} process(es)")

        if self.config.processes == 1:
            summaries = [self.run_attempt(attempt)
                         for attempt in tqdm(attempts, desc="Attempts",
                                             disable=not self.progress or self.config.attempts == 1)]
        else:
            with ProcessPoolExecutor(max_workers=self.config.processes) as executor:
                futures = [executor.submit(self.run_attempt, attempt) for attempt in attempts]
                summaries = [future.result() for future in
                             tqdm(as_completed(futures), total=len(futures),
                                  desc="Attempts", disable=not self.progress)]
            summaries.sort(key=lambda summary: summary.attempt)

        logger.info("Simulation complete")
        return summaries

SUMMARY_FIELDS = [f.name for f in fields(AttemptSummary)]

def write_summaries_csv(path: str, summaries: List[AttemptSummary]):
    """Write one row per attempt"""
    with open(path, 'w', newline='') as output:
        writer = csv.DictWriter(output, fieldnames=SUMMARY_FIELDS)
        writer.writeheader()
        for summary in summaries:
            writer.writerow(asdict(summary))
    logger.info(f"Wrote {len(summaries)} attempt summaries to {path}")

def print_simulation_results(summaries: List[AttemptSummary]):
    """Print formatted simulation results"""
    print("\nSimulation Results:")
    for summary in summaries:
        hands = summary.total_hands or 1
        print(f"\nAttempt {summary.attempt + 1}:")
        print(f"Hands Played: {summary.total_hands:,} (stopped: {summary.stop_reason})")
        print(f"Wins: {summary.wins:,} ({summary.win_rate*100:.2f}%)")
        print(f"Losses: {summary.losses:,} ({summary.losses/hands*100:.2f}%)")
        print(f"Pushes: {summary.pushes:,} ({summary.pushes/hands*100:.2f}%)")
        print(f"Max Bet: ${summary.max_bet:,.2f}")
        print(f"Starting Bankroll: ${summary.starting_bankroll:,.2f}")
        print(f"Final Bankroll: ${summary.final_bankroll:,.2f}")
        print(f"Net Result: ${summary.net_winnings:,.2f}")

    if len(summaries) > 1:
        net = [summary.net_winnings for summary in summaries]
        print(f"\n{len(summaries)} simulations complete.")
        print(f"Average Net Result: ${sum(net)/len(net):,.2f}")
        print(f"Best: ${max(net):,.2f}  Worst: ${min(net):,.2f}")
