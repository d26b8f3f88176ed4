import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from mithril.collateral import CollateralLedger
from mithril.debt import DebtLedger
from mithril.exceptions import (
    ExternalCallError,
    ReentrancyError,
    TokenError,
    ValidationError,
)
from mithril.health import HealthFactorEvaluator
from mithril.liquidation import LiquidationCoordinator
from mithril.metrics import Metric, MetricsLogger
from mithril.oracle import PriceOracle
from mithril.token import AssetLedger, DebtToken
from mithril.types import (
    Account,
    Asset,
    CollateralDeposited,
    CollateralRedeemed,
    DebtBurned,
    DebtMinted,
    FeedId,
    Liquidated,
)
from mithril.valuation import Valuation


RECORD_METRICS = {
    CollateralDeposited: (Metric.COLLATERAL_DEPOSITED, lambda record: record.amount),
    CollateralRedeemed: (Metric.COLLATERAL_REDEEMED, lambda record: record.amount),
    DebtMinted: (Metric.DEBT_MINTED, lambda record: record.amount),
    DebtBurned: (Metric.DEBT_BURNED, lambda record: record.amount),
    Liquidated: (Metric.LIQUIDATION, lambda record: record.debt_covered),
}


@dataclass(frozen=True)
class Checkpoint:
    events: int
    collateral: Any
    debt: Any
    debt_token: Any
    asset_ledgers: Dict[Asset, Any]


class PositionEngine:
    """
    Tracks collateral and debt per account and keeps every account with debt at or above
    MIN_HEALTH_FACTOR.

    Public mutating operations take the calling account first. Each one runs inside
    a guard that rejects nested entry and restores the engine, the debt token and the
    asset ledgers to their state on entry if anything fails, so operations are
    all-or-nothing.
    """

    address: Account
    asset_ledgers: Dict[Asset, AssetLedger]
    collateral: CollateralLedger
    debt: DebtLedger
    debt_token: DebtToken
    events: List[Any]
    health: HealthFactorEvaluator
    liquidation: LiquidationCoordinator
    metrics_logger: Optional[MetricsLogger]
    valuation: Valuation

    def __init__(
        self,
        address: Account,
        assets: Sequence[Asset],
        feeds: Sequence[FeedId],
        debt_token: DebtToken,
        asset_ledgers: Dict[Asset, AssetLedger],
        price_oracle: PriceOracle,
        metrics_logger: Optional[MetricsLogger] = None,
    ):
        """
        - address: the account the engine holds collateral and burns debt tokens with.
        - assets: allowed collateral, in the order collateral value is aggregated.
        - feeds: price feed of each asset, parallel to `assets`.
        - debt_token: the token minted against collateral, owned by `address`.
        - asset_ledgers: the token ledger of each allowed asset.
        - price_oracle: provides the latest price of each feed.
        - metrics_logger: receives one sample per committed change, optional.
        """
        if len(assets) != len(feeds):
            raise ValidationError(
                f"Assets and price feeds must have the same length, got {len(assets)} and {len(feeds)}"
            )
        if len(set(assets)) != len(assets):
            raise ValidationError(f"Duplicate collateral assets in {list(assets)}")
        missing = [asset for asset in assets if asset not in asset_ledgers]
        if missing:
            raise ValidationError(f"No asset ledger for {missing}")

        self.address = address
        self.asset_ledgers = {asset: asset_ledgers[asset] for asset in assets}
        self.collateral = CollateralLedger()
        self.debt = DebtLedger()
        self.debt_token = debt_token
        self.events = []
        self.metrics_logger = metrics_logger
        self.valuation = Valuation(dict(zip(assets, feeds)), price_oracle)
        self.health = HealthFactorEvaluator(list(assets), self.collateral, self.debt, self.valuation)
        self.liquidation = LiquidationCoordinator(
            health=self.health,
            valuation=self.valuation,
            redeem_to=self._redeem_to,
            burn=self._burn,
            emit=self.events.append,
        )
        self._entered = False

    # Mutating operations

    def deposit_collateral(self, caller: Account, asset: Asset, amount: int) -> None:
        self._require_more_than_zero(amount)
        self._require_allowed(asset)
        with self._operation("DepositCollateral"):
            self._deposit(caller, asset, amount)

    def mint_debt(self, caller: Account, amount: int) -> None:
        self._require_more_than_zero(amount)
        with self._operation("MintDebt"):
            self._mint(caller, amount)

    def deposit_and_mint(self, caller: Account, asset: Asset, collateral_amount: int, debt_amount: int) -> None:
        self._require_more_than_zero(collateral_amount)
        self._require_more_than_zero(debt_amount)
        self._require_allowed(asset)
        with self._operation("DepositAndMint"):
            self._deposit(caller, asset, collateral_amount)
            self._mint(caller, debt_amount)

    def redeem_collateral(self, caller: Account, asset: Asset, amount: int) -> None:
        self._require_more_than_zero(amount)
        self._require_allowed(asset)
        with self._operation("RedeemCollateral"):
            self._redeem_to(caller, caller, asset, amount)
            self.health.revert_if_broken(caller)

    def redeem_for_burn(self, caller: Account, asset: Asset, collateral_amount: int, debt_amount: int) -> None:
        """
        Redeem collateral then burn debt. Each leg checks the caller's health factor,
        so the redemption alone must already keep the position solvent.
        """
        self._require_more_than_zero(collateral_amount)
        self._require_more_than_zero(debt_amount)
        self._require_allowed(asset)
        with self._operation("RedeemForBurn"):
            self._redeem_to(caller, caller, asset, collateral_amount)
            self.health.revert_if_broken(caller)
            self._burn(debt_amount, on_behalf_of=caller, payer=caller)
            self.health.revert_if_broken(caller)

    def burn_debt(self, caller: Account, amount: int) -> None:
        self._require_more_than_zero(amount)
        with self._operation("BurnDebt"):
            self._burn(amount, on_behalf_of=caller, payer=caller)
            self.health.revert_if_broken(caller)

    def liquidate(self, caller: Account, asset: Asset, account: Account, debt_to_cover: int) -> int:
        self._require_more_than_zero(debt_to_cover)
        self._require_allowed(asset)
        with self._operation("Liquidate"):
            return self.liquidation.liquidate(caller, asset, account, debt_to_cover)

    # Read-only views

    def health_factor_of(self, account: Account) -> int:
        return self.health.health_factor(account)

    def account_information(self, account: Account) -> Tuple[int, int]:
        return self.health.account_information(account)

    def collateral_value_usd(self, account: Account) -> int:
        return self.health.collateral_value_usd(account)

    def usd_value(self, asset: Asset, amount: int) -> int:
        return self.valuation.usd_value(asset, amount)

    def asset_amount_from_usd(self, asset: Asset, usd_amount: int) -> int:
        return self.valuation.asset_amount_from_usd(asset, usd_amount)

    def collateral_balance_of(self, account: Account, asset: Asset) -> int:
        return self.collateral.balance_of(account, asset)

    def price_feed_of(self, asset: Asset) -> FeedId:
        self._require_allowed(asset)
        return self.valuation.price_feeds[asset]

    @property
    def collateral_assets(self) -> List[Asset]:
        return self.valuation.assets

    def accounts(self) -> List[Account]:
        return list(dict.fromkeys(self.collateral.accounts() + self.debt.accounts()))

    # Primitives, only ever called inside an operation

    def _deposit(self, account: Account, asset: Asset, amount: int) -> None:
        self.collateral.credit(account, asset, amount)
        self.events.append(CollateralDeposited(account=account, asset=asset, amount=amount))
        self._call(
            f"{asset} transfer of {amount} from {account}",
            self.asset_ledgers[asset].transfer_from,
            self.address,
            account,
            self.address,
            amount,
        )

    def _redeem_to(self, from_: Account, to: Account, asset: Asset, amount: int) -> None:
        self.collateral.debit(from_, asset, amount)
        self.events.append(CollateralRedeemed(redeemed_from=from_, redeemed_to=to, asset=asset, amount=amount))
        self._call(
            f"{asset} transfer of {amount} to {to}",
            self.asset_ledgers[asset].transfer,
            self.address,
            to,
            amount,
        )

    def _mint(self, account: Account, amount: int) -> None:
        self.debt.increase(account, amount)
        self.health.revert_if_broken(account)
        self.events.append(DebtMinted(account=account, amount=amount))
        self._call(
            f"{self.debt_token.symbol} mint of {amount} to {account}",
            self.debt_token.mint,
            self.address,
            account,
            amount,
        )

    def _burn(self, amount: int, on_behalf_of: Account, payer: Account) -> None:
        self.debt.decrease(on_behalf_of, amount)
        self.events.append(DebtBurned(on_behalf_of=on_behalf_of, payer=payer, amount=amount))
        self._call(
            f"{self.debt_token.symbol} transfer of {amount} from {payer}",
            self.debt_token.transfer_from,
            self.address,
            payer,
            self.address,
            amount,
        )
        self._call(
            f"{self.debt_token.symbol} burn of {amount}",
            self.debt_token.burn,
            self.address,
            amount,
        )

    def _call(self, description: str, function: Callable[..., Optional[bool]], *args) -> None:
        """
        Runs a collaborator call, turning a False return or a token error into ExternalCallError.
        """
        try:
            succeeded = function(*args)
        except TokenError as e:
            raise ExternalCallError(f"{description} failed: {e}") from e

        if succeeded is False:
            raise ExternalCallError(f"{description} failed")

    # Guard and rollback

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        if self._entered:
            raise ReentrancyError(f"{name} called while another operation is in progress")

        checkpoint = self._checkpoint()
        self._entered = True
        try:
            yield
        except Exception as e:
            self._rollback(checkpoint)
            logging.warning(f"{name} failed\t => {e!r}")
            if self.metrics_logger is not None:
                self.metrics_logger.log(Metric.OPERATION_FAILED)
            raise
        else:
            self._publish(self.events[checkpoint.events:])
        finally:
            self._entered = False

    def _checkpoint(self) -> Checkpoint:
        return Checkpoint(
            events=len(self.events),
            collateral=self.collateral.snapshot(),
            debt=self.debt.snapshot(),
            debt_token=self.debt_token.snapshot(),
            asset_ledgers={asset: ledger.snapshot() for asset, ledger in self.asset_ledgers.items()},
        )

    def _rollback(self, checkpoint: Checkpoint) -> None:
        del self.events[checkpoint.events:]
        self.collateral.restore(checkpoint.collateral)
        self.debt.restore(checkpoint.debt)
        self.debt_token.restore(checkpoint.debt_token)
        for asset, state in checkpoint.asset_ledgers.items():
            self.asset_ledgers[asset].restore(state)

    def _publish(self, records: List[Any]) -> None:
        for record in records:
            logging.info(f"{type(record).__name__}\t => {record}")
            if self.metrics_logger is not None:
                metric, sample = RECORD_METRICS[type(record)]
                self.metrics_logger.log(metric, sample(record))

    # Preconditions

    def _require_more_than_zero(self, amount: int) -> None:
        if amount <= 0:
            raise ValidationError(f"Amount must be more than zero, got {amount}")

    def _require_allowed(self, asset: Asset) -> None:
        if asset not in self.asset_ledgers:
            raise ValidationError(f"Asset {asset} is not allowed as collateral")
