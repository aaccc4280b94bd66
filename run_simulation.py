from typing import List, Optional
import argparse
import logging
import sys

from basic_strategy import StrategyTable
from betting import BettingStrategy
from blackjack_simulator import (AttemptSummary, BlackjackSimulator, ConfigurationError,
                                 SimulationConfig, VALID_DECK_COUNTS,
                                 print_simulation_results, write_summaries_csv)

def run_blackjack_simulation(config: SimulationConfig, strategy: Optional[StrategyTable] = None,
                             output: Optional[str] = None, progress: bool = True) -> List[AttemptSummary]:
    """
    Run a blackjack simulation with a basic strategy chart.

    Args:
        config: Run settings
        strategy: Chart to play by (defaults to the built-in one)
        output: Optional CSV path receiving one row per attempt
        progress: Show tqdm progress bars
    """
    simulator = BlackjackSimulator(config, strategy, progress=progress)

    print(f"Blackjack Simulator - Running {config.num_hands:,} hands")
    print(f"Starting bankroll: ${config.starting_bankroll:,.2f}")
    print(f"Table minimum: ${config.table_minimum:,.2f}")
    print(f"Number of decks: {config.num_decks}")
    print(f"Betting strategy: {config.betting_strategy.value}")

    summaries = simulator.run()
    print_simulation_results(summaries)
    if output:
        write_summaries_csv(output, summaries)
    return summaries

def build_parser() -> argparse.ArgumentParser:
    defaults = SimulationConfig(num_hands=1)
    parser = argparse.ArgumentParser(
        prog="blackjack-sim",
        description="Simulate blackjack hands played by basic strategy under a betting strategy.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--hands", type=int, required=True,
                        help="Number of hands to simulate per attempt")
    parser.add_argument("--bankroll", type=float, default=defaults.starting_bankroll,
                        help="Starting bankroll amount")
    parser.add_argument("--minimum", type=float, default=defaults.table_minimum,
                        help="Table minimum bet")
    parser.add_argument("--decks", type=int, choices=VALID_DECK_COUNTS, default=defaults.num_decks,
                        help="Number of decks in the shoe")
    parser.add_argument("--attempts", type=int, default=defaults.attempts,
                        help="Number of simulation runs")
    parser.add_argument("--quit-threshold", type=float, default=defaults.quit_threshold,
                        help="Stop an attempt once the bankroll reaches this amount")
    parser.add_argument("--strategy", choices=[s.value for s in BettingStrategy],
                        default=defaults.betting_strategy.value,
                        help="Betting strategy: flat always bets the minimum, increase adds one "
                             "minimum per consecutive win, high_increase doubles after the first "
                             "two wins then adds half the bet (rounded up)")
    parser.add_argument("--seed", default=None,
                        help="Seed string for reproducible runs")
    parser.add_argument("--strategy-file", default=None,
                        help="CSV basic strategy chart (defaults to the built-in chart)")
    parser.add_argument("--output", default=None,
                        help="Write per-attempt results to this CSV file")
    parser.add_argument("--processes", type=int, default=defaults.processes,
                        help="Worker processes used to run attempts in parallel")
    parser.add_argument("--no-progress", action="store_true",
                        help="Hide progress bars")
    parser.add_argument("--print-strategy", action="store_true",
                        help="Print the strategy chart before running")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log every hand outcome")
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(message)s")

    config = SimulationConfig(
        num_hands=args.hands,
        starting_bankroll=args.bankroll,
        table_minimum=args.minimum,
        num_decks=args.decks,
        betting_strategy=BettingStrategy.from_name(args.strategy),
        quit_threshold=args.quit_threshold,
        seed=args.seed,
        attempts=args.attempts,
        processes=args.processes,
    )
    try:
        config.validate()
        strategy = (StrategyTable.from_file(args.strategy_file) if args.strategy_file
                    else StrategyTable.default())
        if args.print_strategy:
            strategy.print_tables()
        run_blackjack_simulation(config, strategy, args.output,
                                 progress=not args.no_progress)
    except (ConfigurationError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
