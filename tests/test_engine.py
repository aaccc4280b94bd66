import logging

from blackjack import BlackjackRules, GameResult, RoundState
from betting import BettingStrategy


def test_ace_up_nineteen_loses_to_twenty(make_game):
    game = make_game([10, 1, 9, 9], betting=BettingStrategy.INCREASE_AFTER_WIN)
    game.player.win_streak = 2
    game.player.bet = 30.0

    result = game.play_round()

    assert result.outcome is GameResult.LOSS
    [hand] = result.hand_results
    assert hand.result is GameResult.LOSS
    assert (hand.player_value, hand.dealer_value) == (19, 20)
    assert hand.winnings == 0.0
    assert game.player.bankroll == 970.0
    assert game.player.win_streak == 0
    assert game.player.bet == 10.0


def test_natural_blackjack_pays_three_to_two(make_game):
    game = make_game([1, 10, 13, 9])

    result = game.play_round()

    assert result.outcome is GameResult.WIN
    assert result.hand_results[0].winnings == 25.0
    assert game.player.bankroll == 1015.0
    assert game.player.win_streak == 1


def test_split_eights_with_one_win_and_one_bust_is_a_push(make_game):
    # P8 D6 P8 D10, split cards K / 8, second hand hits K, dealer draws 10
    game = make_game([8, 6, 8, 10, 13, 8, 13, 10], betting=BettingStrategy.INCREASE_AFTER_WIN)
    game.player.win_streak = 1
    game.player.bet = 20.0

    result = game.play_round()

    first, second = result.hand_results
    assert first.result is GameResult.WIN
    assert first.player_value == 18
    assert second.result is GameResult.LOSS
    assert second.player_value == 26
    assert first.is_split and second.is_split
    assert first.label == "WIN (SPLIT)"
    assert result.total_bet == 40.0
    assert result.total_winnings == 40.0
    assert result.outcome is GameResult.PUSH
    assert game.player.bankroll == 1000.0
    assert game.player.win_streak == 0
    assert game.player.bet == 10.0
    assert (game.player.wins, game.player.losses, game.player.pushes) == (1, 1, 0)


def test_no_reshuffle_mid_round(make_game, stack_shoe):
    game = make_game([])
    stack_shoe(game.shoe, [10, 10, 10, 7], shuffle_point=3)
    assert not game.shoe.needs_shuffle()

    first = game.play_round(0)

    assert not first.reshuffled
    assert first.outcome is GameResult.WIN
    assert game.shoe.cards_remaining() == 0
    assert game.shoe.needs_shuffle()

    second = game.play_round(1)

    assert second.reshuffled
    used = sum(len(h.cards) for h in game.hands) + len(game.dealer_hand.cards)
    assert game.shoe.cards_remaining() == game.shoe.total_cards - used


def test_double_down_doubles_bet_and_takes_one_card(make_game):
    # 6,5 vs dealer 6 doubles, draws a 10; dealer 16 draws 10 and busts
    game = make_game([6, 6, 5, 10, 10, 10, 2])

    result = game.play_round()

    [hand] = result.hand_results
    assert hand.is_doubled
    assert hand.label == "WIN (DOUBLE)"
    assert hand.bet == 20.0
    assert hand.winnings == 40.0
    assert len(game.hands[0].cards) == 3
    assert game.player.bankroll == 1020.0
    assert game.shoe.cards_remaining() == 1


def test_unaffordable_double_still_takes_one_card(make_game):
    game = make_game([6, 6, 5, 10, 2, 10], bankroll=10.0)

    result = game.play_round()

    [hand] = result.hand_results
    assert not hand.is_doubled
    assert hand.bet == 10.0
    assert hand.player_value == 13
    assert len(game.hands[0].cards) == 3
    assert hand.result is GameResult.WIN
    assert game.player.bankroll == 20.0


def test_unaffordable_split_is_played_as_hit(make_game):
    game = make_game([8, 6, 8, 10, 3, 10], bankroll=10.0)

    result = game.play_round()

    assert len(game.hands) == 1
    assert result.hand_results[0].player_value == 19
    assert result.outcome is GameResult.WIN


def test_doubled_twenty_one_loses_to_dealer_blackjack(make_game):
    game = make_game([5, 1, 6, 13, 10])

    result = game.play_round()

    [hand] = result.hand_results
    assert hand.is_doubled
    assert hand.player_value == 21
    assert hand.result is GameResult.LOSS
    assert game.player.bankroll == 980.0


def test_both_blackjack_is_a_push(make_game):
    game = make_game([1, 1, 13, 12])

    result = game.play_round()

    assert result.hand_results[0].result is GameResult.PUSH
    assert result.hand_results[0].winnings == 10.0
    assert game.player.bankroll == 1000.0


def test_dealer_skips_play_when_every_hand_busts(make_game):
    game = make_game([10, 7, 6, 5, 10, 9])

    result = game.play_round()

    assert result.outcome is GameResult.LOSS
    assert len(game.dealer_hand.cards) == 2
    assert game.shoe.cards_remaining() == 1


def test_dealer_hits_soft_seventeen(make_game):
    game = make_game([10, 1, 10, 6, 3])

    result = game.play_round()

    assert result.hand_results[0].dealer_value == 20
    assert result.outcome is GameResult.PUSH


def test_dealer_can_stand_on_soft_seventeen(make_game):
    game = make_game([10, 1, 10, 6, 3], rules=BlackjackRules(dealer_hits_soft_17=False))

    result = game.play_round()

    assert result.hand_results[0].dealer_value == 17
    assert result.outcome is GameResult.WIN
    assert game.shoe.cards_remaining() == 1


def test_resplit_when_allowed(make_game):
    game = make_game([8, 6, 8, 10, 8, 13, 13, 13, 10],
                     rules=BlackjackRules(allow_resplit=True))

    result = game.play_round()

    assert len(game.hands) == 3
    assert [h.player_value for h in result.hand_results] == [18, 18, 18]
    assert result.outcome is GameResult.WIN
    assert game.player.bankroll == 1030.0


def test_no_double_after_split_plays_as_hit(make_game):
    # Both split 3s draw an 8; the resulting 11s are hit instead of doubled
    game = make_game([3, 6, 3, 10, 8, 8, 10, 10, 10],
                     rules=BlackjackRules(allow_double_after_split=False))

    result = game.play_round()

    assert not any(h.is_doubled for h in result.hand_results)
    assert [h.player_value for h in result.hand_results] == [21, 21]


def test_exhausted_shoe_ends_hand_without_bust(make_game):
    game = make_game([10, 10, 6, 7])

    result = game.play_round()

    [hand] = result.hand_results
    assert hand.player_value == 16
    assert hand.result is GameResult.LOSS
    assert not game.hands[0].is_bust()


def test_void_round_when_initial_deal_fails(make_game):
    game = make_game([10, 10, 6])

    result = game.play_round()

    assert result.dead
    assert result.outcome is GameResult.PUSH
    assert result.hand_results == []
    assert game.player.bankroll == 1000.0
    assert game.round_state is RoundState.COMPLETE


def test_round_reaches_complete_state(make_game):
    game = make_game([10, 6, 10, 10])
    assert game.round_state is RoundState.NOT_STARTED
    game.play_round()
    assert game.round_state is RoundState.COMPLETE


def test_wager_is_clamped_to_bankroll(make_game):
    game = make_game([10, 6, 10, 10, 10], bankroll=25.0,
                     betting=BettingStrategy.INCREASE_AFTER_WIN)
    game.player.bet = 40.0

    result = game.play_round()

    assert result.total_bet == 25.0
    assert game.player.bankroll == 50.0
    assert game.player.bet == 50.0


def test_split_aces_drawing_tens_are_paid_as_blackjacks(make_game):
    # PA D6 PA D10, each ace draws a K, dealer 16 draws 10
    game = make_game([1, 6, 1, 10, 13, 13, 10])

    result = game.play_round()

    assert len(game.hands) == 2
    for hand in result.hand_results:
        assert hand.is_split
        assert hand.result is GameResult.WIN
        assert hand.winnings == 25.0
    assert game.player.bankroll == 1030.0


def test_hand_outcome_is_logged(make_game, caplog):
    game = make_game([6, 6, 5, 10, 10, 10, 2])

    with caplog.at_level(logging.DEBUG, logger="blackjack"):
        game.play_round()

    assert ("Hand 0 (1): WIN (DOUBLE) - Bet: $20.00, Winnings: $40.00, "
            "Bankroll: $1020.00 (Player: 21, Dealer: 26)") in caplog.messages
