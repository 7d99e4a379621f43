"""Exceptions raised by the lottery engine and its collaborators."""
from __future__ import annotations


class LotteryError(Exception):
    """Base exception for all lottery errors."""
    pass


class ConfigError(LotteryError):
    """Raised when configuration values are missing or out of range."""
    pass


class InvalidAddress(LotteryError):
    """Raised when an identity is not a base58 encoded 32 byte address."""
    def __init__(self, address: object):
        self.address = address
        super().__init__(f"Invalid address: {address!r}")


class InsufficientPayment(LotteryError):
    """Raised when an entry pays less than the entrance fee."""
    def __init__(self, payment: int, entrance_fee: int):
        self.payment = payment
        self.entrance_fee = entrance_fee
        super().__init__(
            f"Payment {payment} is below the entrance fee {entrance_fee}"
        )


class RoundNotOpen(LotteryError):
    """Raised when entering while a draw is in flight."""
    def __init__(self, state):
        self.state = state
        super().__init__(f"Round is not open (state={state.name})")


class UpkeepNotNeeded(LotteryError):
    """Raised when a draw is triggered outside eligibility.

    Carries the snapshot that made the round ineligible.
    """
    def __init__(self, balance: int, num_players: int, state):
        self.balance = balance
        self.num_players = num_players
        self.state = state
        super().__init__(
            f"Upkeep not needed: balance={balance}, players={num_players}, "
            f"state={state.name}"
        )


class PayoutFailed(LotteryError):
    """Raised when the pot cannot be transferred to the winner.

    The round has already been reset when this is raised; the pot stays in
    the engine account.
    """
    def __init__(self, winner: str, amount: int):
        self.winner = winner
        self.amount = amount
        super().__init__(f"Payout of {amount} to {winner} failed")


class OnlyCoordinatorCanFulfill(LotteryError):
    """Raised when someone other than the coordinator delivers randomness."""
    def __init__(self, caller: str, coordinator: str):
        self.caller = caller
        self.coordinator = coordinator
        super().__init__(
            f"Only coordinator {coordinator} can fulfill, got caller {caller}"
        )


class OracleError(LotteryError):
    """Base class for randomness oracle errors."""
    pass


class UnknownRequest(OracleError):
    """Raised when a fulfillment references no outstanding request."""
    def __init__(self, request_id: int):
        self.request_id = request_id
        super().__init__(f"Request {request_id} is not outstanding")


class InvalidRandomWords(OracleError):
    """Raised when a fulfillment carries the wrong number of words."""
    def __init__(self, request_id: int, expected: int, got: int):
        self.request_id = request_id
        self.expected = expected
        self.got = got
        super().__init__(
            f"Request {request_id}: expected {expected} random words, got {got}"
        )


class RpcError(OracleError):
    """Raised when the randomness service answers with a JSON-RPC error."""
    pass


class LedgerError(LotteryError):
    """Base class for balance transfer errors."""
    pass


class InsufficientFunds(LedgerError):
    def __init__(self, address: str, required: int, available: int):
        self.address = address
        self.required = required
        self.available = available
        super().__init__(
            f"{address} has insufficient funds. Required: {required}, "
            f"Available: {available}"
        )


class TransferRejected(LedgerError):
    def __init__(self, recipient: str, amount: int):
        self.recipient = recipient
        self.amount = amount
        super().__init__(f"{recipient} rejected a transfer of {amount}")


class AuditMismatch(LotteryError):
    """Raised when an audit file does not reproduce its recorded winner."""
    pass
