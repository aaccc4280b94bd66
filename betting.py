from enum import Enum
import math

class BettingStrategy(Enum):
    FLAT = "flat"                              # Always bet the table minimum
    INCREASE_AFTER_WIN = "increase"            # Add one table minimum per consecutive win
    HIGH_INCREASE_AFTER_WIN = "high_increase"  # Double twice, then add half the bet

    @classmethod
    def from_name(cls, name: str) -> "BettingStrategy":
        try:
            return cls(name)
        except ValueError:
            choices = ", ".join(strategy.value for strategy in cls)
            raise ValueError(f"Unknown betting strategy '{name}' (choose from {choices})") from None

class Player:
    """
    Bankroll and betting state of the simulated player.

    `bet` is the amount the betting strategy wants to wager next round; the
    actual wager is clamped to the bankroll at placement time without
    changing `bet`.
    """

    def __init__(self, bankroll: float = 1000.0, table_minimum: float = 10.0,
                 strategy: BettingStrategy = BettingStrategy.INCREASE_AFTER_WIN):
        self.bankroll = bankroll
        self.table_minimum = table_minimum
        self.strategy = strategy
        self.bet = table_minimum
        self.win_streak = 0
        self.wins = 0
        self.losses = 0
        self.pushes = 0
        self.max_bet = 0.0

    def place_bet(self) -> float:
        wager = min(self.bet, self.bankroll)
        self.bankroll -= wager
        self.max_bet = max(self.max_bet, wager)
        return wager

    def charge(self, amount: float):
        """Take an additional stake (double or split) from the bankroll."""
        self.bankroll -= amount

    def credit(self, amount: float):
        self.bankroll += amount

    def record_results(self, wins: int, losses: int, pushes: int):
        self.wins += wins
        self.losses += losses
        self.pushes += pushes

    def update_bet_after_win(self):
        self.win_streak += 1
        if self.strategy is BettingStrategy.INCREASE_AFTER_WIN:
            self.bet += self.table_minimum
        elif self.strategy is BettingStrategy.HIGH_INCREASE_AFTER_WIN:
            if self.win_streak <= 2:
                self.bet *= 2
            else:
                self.bet += math.ceil(self.bet / 2)

    def reset_bet_after_loss(self):
        self.win_streak = 0
        self.bet = self.table_minimum

    def record_push(self):
        # A push ends the streak just like a loss
        self.win_streak = 0
        self.bet = self.table_minimum
