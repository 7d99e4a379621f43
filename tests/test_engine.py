import pytest

from vrf_lottery.accounts import derive_address
from vrf_lottery.engine import RaffleState
from vrf_lottery.errors import (
    InsufficientFunds,
    InsufficientPayment,
    InvalidAddress,
    OnlyCoordinatorCanFulfill,
    PayoutFailed,
    RoundNotOpen,
    UnknownRequest,
    UpkeepNotNeeded,
)
from vrf_lottery.events import RaffleEntered, RequestedRaffleWinner, WinnerPicked

from conftest import ENTRANCE_FEE, INTERVAL, STARTING_BALANCE


def test_initial_state(engine, clock, config):
    assert engine.raffle_state is RaffleState.OPEN
    assert engine.number_of_players == 0
    assert engine.last_timestamp == clock()
    assert engine.recent_winner is None
    assert engine.entrance_fee == ENTRANCE_FEE
    assert engine.interval == INTERVAL
    assert engine.num_words == 1
    assert engine.request_confirmations == config.request_confirmations


def test_enter_records_player(engine, player, ledger):
    engine.enter(player, ENTRANCE_FEE)

    assert engine.number_of_players == 1
    assert engine.get_player(0) == player
    assert engine.balance == ENTRANCE_FEE
    assert ledger.balance_of(player) == STARTING_BALANCE - ENTRANCE_FEE
    assert engine.events.of_type(RaffleEntered) == [RaffleEntered(player=player)]


def test_enter_appends_in_order(engine, players):
    for n, p in enumerate(players):
        engine.enter(p, ENTRANCE_FEE)
        assert engine.number_of_players == n + 1
        assert engine.get_player(n) == p


def test_enter_keeps_excess_payment(engine, player):
    engine.enter(player, ENTRANCE_FEE * 3)
    assert engine.balance == ENTRANCE_FEE * 3


def test_enter_insufficient_payment(engine, player, ledger):
    with pytest.raises(InsufficientPayment) as exc:
        engine.enter(player, ENTRANCE_FEE - 1)
    assert exc.value.payment == ENTRANCE_FEE - 1
    assert exc.value.entrance_fee == ENTRANCE_FEE
    assert engine.number_of_players == 0
    assert ledger.balance_of(player) == STARTING_BALANCE


def test_enter_insufficient_payment_checked_before_state(entered, players):
    entered.perform_upkeep()
    with pytest.raises(InsufficientPayment):
        entered.enter(players[0], 0)


def test_enter_while_calculating(entered, players):
    entered.perform_upkeep()
    assert entered.raffle_state is RaffleState.CALCULATING

    with pytest.raises(RoundNotOpen):
        entered.enter(players[0], ENTRANCE_FEE)
    assert entered.number_of_players == 1


def test_enter_without_funds(engine):
    broke = derive_address("broke")
    with pytest.raises(InsufficientFunds):
        engine.enter(broke, ENTRANCE_FEE)
    assert engine.number_of_players == 0


def test_enter_rejects_bad_address(engine):
    with pytest.raises(InvalidAddress):
        engine.enter("not-an-address", ENTRANCE_FEE)


def test_get_player_out_of_range(engine, player):
    engine.enter(player, ENTRANCE_FEE)
    with pytest.raises(IndexError):
        engine.get_player(1)
    with pytest.raises(IndexError):
        engine.get_player(-1)


def test_check_upkeep_false_without_balance(engine, clock):
    clock.advance(INTERVAL * 10)
    assert engine.check_upkeep() == (False, b"")


def test_check_upkeep_false_without_players(engine, ledger, clock):
    # Funds sent straight to the engine are not an entry.
    donor = derive_address("donor")
    ledger.fund(donor, ENTRANCE_FEE)
    ledger.transfer(donor, engine.address, ENTRANCE_FEE)
    clock.advance(INTERVAL + 1)

    upkeep_needed, _ = engine.check_upkeep()
    assert not upkeep_needed


def test_check_upkeep_false_before_interval(engine, player, clock):
    engine.enter(player, ENTRANCE_FEE)
    clock.advance(INTERVAL - 1)
    upkeep_needed, _ = engine.check_upkeep()
    assert not upkeep_needed


def test_check_upkeep_true_at_interval_boundary(engine, player, clock):
    engine.enter(player, ENTRANCE_FEE)
    clock.advance(INTERVAL)
    upkeep_needed, _ = engine.check_upkeep()
    assert upkeep_needed


def test_check_upkeep_false_while_calculating(entered):
    entered.perform_upkeep()
    upkeep_needed, _ = entered.check_upkeep()
    assert not upkeep_needed


def test_check_upkeep_is_not_cached(engine, player, clock):
    engine.enter(player, ENTRANCE_FEE)
    assert engine.check_upkeep()[0] is False
    clock.advance(INTERVAL)
    assert engine.check_upkeep()[0] is True


def test_perform_upkeep_requests_randomness(entered, coordinator):
    request_id = entered.perform_upkeep()

    assert entered.raffle_state is RaffleState.CALCULATING
    assert coordinator.pending_requests() == [request_id]
    assert entered.events.last(RequestedRaffleWinner) == RequestedRaffleWinner(request_id)


def test_perform_upkeep_twice_fails(entered):
    entered.perform_upkeep()
    with pytest.raises(UpkeepNotNeeded) as exc:
        entered.perform_upkeep()
    assert exc.value.state is RaffleState.CALCULATING
    assert exc.value.num_players == 1
    assert exc.value.balance == ENTRANCE_FEE


def test_perform_upkeep_without_entrants(engine, clock, coordinator):
    clock.advance(INTERVAL + 1)
    assert engine.check_upkeep()[0] is False

    with pytest.raises(UpkeepNotNeeded) as exc:
        engine.perform_upkeep()
    assert (exc.value.balance, exc.value.num_players, exc.value.state) == (
        0,
        0,
        RaffleState.OPEN,
    )
    assert coordinator.pending_requests() == []


def test_fulfill_pays_winner_and_resets(engine, players, ledger, clock, coordinator):
    for p in players:
        engine.enter(p, ENTRANCE_FEE)
    clock.advance(INTERVAL + 1)
    pot = engine.balance
    request_id = engine.perform_upkeep()
    clock.advance(5)

    coordinator.fulfill_random_words(request_id, [6])

    winner = players[6 % len(players)]
    assert engine.recent_winner == winner
    assert engine.raffle_state is RaffleState.OPEN
    assert engine.number_of_players == 0
    assert engine.last_timestamp == clock()
    assert engine.balance == 0
    assert ledger.balance_of(winner) == STARTING_BALANCE - ENTRANCE_FEE + pot
    assert engine.events.last(WinnerPicked) == WinnerPicked(winner=winner)


def test_single_entrant_scenario(entered, player, ledger, coordinator):
    assert entered.check_upkeep()[0] is True
    request_id = entered.perform_upkeep()
    assert entered.raffle_state is RaffleState.CALCULATING

    coordinator.fulfill_random_words(request_id, [7])

    assert entered.recent_winner == player
    assert ledger.balance_of(player) == STARTING_BALANCE
    assert entered.raffle_state is RaffleState.OPEN
    assert entered.number_of_players == 0


def test_fulfill_with_derived_words(entered, player, coordinator):
    request_id = entered.perform_upkeep()
    words = coordinator.fulfill_random_words(request_id)
    assert len(words) == 1
    assert entered.recent_winner == player


def test_fulfill_only_from_coordinator(entered, player):
    request_id = entered.perform_upkeep()
    with pytest.raises(OnlyCoordinatorCanFulfill):
        entered.raw_fulfill_random_words(player, request_id, [0])
    assert entered.raffle_state is RaffleState.CALCULATING


def test_fulfill_unknown_request(entered, coordinator):
    with pytest.raises(UnknownRequest):
        coordinator.fulfill_random_words(99, [0])


def test_fulfill_only_once(entered, coordinator):
    request_id = entered.perform_upkeep()
    coordinator.fulfill_random_words(request_id, [0])
    with pytest.raises(UnknownRequest):
        coordinator.fulfill_random_words(request_id, [0])


def test_payout_failure_leaves_round_reset(entered, player, ledger, coordinator, clock):
    ledger.reject_payments(player)
    request_id = entered.perform_upkeep()

    with pytest.raises(PayoutFailed) as exc:
        coordinator.fulfill_random_words(request_id, [0])

    assert exc.value.winner == player
    assert exc.value.amount == ENTRANCE_FEE
    # Reset is committed; the pot is stranded in the engine account.
    assert entered.raffle_state is RaffleState.OPEN
    assert entered.number_of_players == 0
    assert entered.recent_winner == player
    assert entered.last_timestamp == clock()
    assert entered.balance == ENTRANCE_FEE
    assert not coordinator.is_pending(request_id)


def test_stranded_pot_rolls_into_next_round(entered, player, players, ledger, coordinator, clock):
    ledger.reject_payments(player)
    request_id = entered.perform_upkeep()
    with pytest.raises(PayoutFailed):
        coordinator.fulfill_random_words(request_id, [0])

    entered.enter(players[0], ENTRANCE_FEE)
    clock.advance(INTERVAL)
    request_id = entered.perform_upkeep()
    coordinator.fulfill_random_words(request_id, [0])

    assert entered.recent_winner == players[0]
    assert ledger.balance_of(players[0]) == STARTING_BALANCE + ENTRANCE_FEE


def test_fulfill_with_no_players_is_a_modulo_fault(engine, coordinator):
    # Unreachable through perform_upkeep; shown here to document the fault.
    with pytest.raises(ZeroDivisionError):
        engine.raw_fulfill_random_words(coordinator.address, 1, [5])


def test_draw_without_callback_stays_calculating(entered, clock):
    entered.perform_upkeep()
    clock.advance(INTERVAL * 100)
    assert entered.raffle_state is RaffleState.CALCULATING
    assert entered.check_upkeep()[0] is False


def test_failed_request_reopens_round(entered, coordinator, monkeypatch):
    def unreachable(request, consumer):
        raise ConnectionError("oracle unreachable")

    monkeypatch.setattr(coordinator, "request_random_words", unreachable)
    with pytest.raises(ConnectionError):
        entered.perform_upkeep()

    assert entered.raffle_state is RaffleState.OPEN
    assert entered.check_upkeep()[0] is True
    assert entered.events.of_type(RequestedRaffleWinner) == []
