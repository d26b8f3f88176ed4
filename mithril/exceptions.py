from typing import Optional

from mithril.types import Account


class MithrilError(Exception):
    """
    Base class for every error raised by the engine. Any of these aborts the current
    operation and leaves no partially applied state behind.
    """


class ValidationError(MithrilError):
    """
    Invalid input: a non-positive amount, a disallowed asset or inconsistent
    construction arguments. Always raised before any mutation.
    """


class InsufficientBalanceError(ValidationError):
    def __init__(self, account: Account, available: int, requested: int, what: str = "balance"):
        super().__init__(f"{account} has {what} {available}, cannot remove {requested}")
        self.account = account
        self.available = available
        self.requested = requested


class StateInvariantError(MithrilError):
    """
    An account's health factor fell below MIN_HEALTH_FACTOR after a tentative mutation.
    """

    def __init__(self, account: Account, health_factor: int):
        super().__init__(f"Health factor of {account} is broken: {health_factor}")
        self.account = account
        self.health_factor = health_factor


class ExternalCallError(MithrilError):
    """
    A collaborator (asset ledger, debt token, price feed) reported a failure.
    """


class PriceFeedError(ExternalCallError):
    pass


class ReentrancyError(MithrilError):
    pass


class LiquidationPreconditionError(MithrilError):
    def __init__(self, account: Account, health_factor: int):
        super().__init__(f"Health factor of {account} is ok, cannot liquidate: {health_factor}")
        self.account = account
        self.health_factor = health_factor


class LiquidationEffectError(MithrilError):
    def __init__(self, message: str, account: Optional[Account] = None, health_factor: Optional[int] = None):
        super().__init__(message)
        self.account = account
        self.health_factor = health_factor


class TokenError(Exception):
    """
    Raised by the in-process token collaborators, never by the engine itself.
    """
