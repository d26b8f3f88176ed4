from dataclasses import dataclass
from typing import NewType


Account = NewType("Account", str)


Asset = NewType("Asset", str)


FeedId = NewType("FeedId", str)


# 8-decimal fixed point, as reported by a price feed
Price = int


Timestamp = int


@dataclass(frozen=True)
class CollateralDeposited:
    account: Account
    asset: Asset
    amount: int


@dataclass(frozen=True)
class CollateralRedeemed:
    redeemed_from: Account
    redeemed_to: Account
    asset: Asset
    amount: int


@dataclass(frozen=True)
class DebtMinted:
    account: Account
    amount: int


@dataclass(frozen=True)
class DebtBurned:
    on_behalf_of: Account
    payer: Account
    amount: int


@dataclass(frozen=True)
class Liquidated:
    account: Account
    liquidator: Account
    asset: Asset
    debt_covered: int
    collateral_seized: int
