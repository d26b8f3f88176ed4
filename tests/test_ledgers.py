import pytest

from mithril.collateral import CollateralLedger
from mithril.debt import DebtLedger
from mithril.exceptions import InsufficientBalanceError, ValidationError
from mithril.types import Account, Asset


ALICE = Account("0xa11ce")
BOB = Account("0xb0b")
WETH = Asset("weth")
WBTC = Asset("wbtc")


def test_collateral_balances_are_per_account_and_asset():
    ledger = CollateralLedger()

    ledger.credit(ALICE, WETH, 10)
    ledger.credit(ALICE, WBTC, 3)
    ledger.credit(BOB, WETH, 5)
    ledger.debit(ALICE, WETH, 4)

    assert ledger.balance_of(ALICE, WETH) == 6
    assert ledger.balance_of(ALICE, WBTC) == 3
    assert ledger.balance_of(BOB, WETH) == 5
    assert ledger.balance_of(BOB, WBTC) == 0
    assert ledger.total_of(WETH) == 11


def test_collateral_debit_below_zero_fails_without_change():
    ledger = CollateralLedger()
    ledger.credit(ALICE, WETH, 10)

    with pytest.raises(InsufficientBalanceError) as e:
        ledger.debit(ALICE, WETH, 11)

    assert isinstance(e.value, ValidationError)
    assert e.value.available == 10
    assert e.value.requested == 11
    assert ledger.balance_of(ALICE, WETH) == 10


def test_emptied_account_disappears():
    ledger = CollateralLedger()
    ledger.credit(ALICE, WETH, 10)
    ledger.debit(ALICE, WETH, 10)

    assert ledger.balances == {}
    assert ledger.accounts() == []


def test_collateral_snapshot_is_independent():
    ledger = CollateralLedger()
    ledger.credit(ALICE, WETH, 10)
    snapshot = ledger.snapshot()

    ledger.credit(ALICE, WETH, 1)
    ledger.credit(BOB, WBTC, 1)
    ledger.restore(snapshot)

    assert ledger.balances == {(ALICE, WETH): 10}


def test_debt_increase_and_decrease():
    ledger = DebtLedger()

    ledger.increase(ALICE, 100)
    ledger.increase(BOB, 50)
    ledger.decrease(ALICE, 30)

    assert ledger.minted_of(ALICE) == 70
    assert ledger.minted_of(BOB) == 50
    assert ledger.total_minted == 120


def test_debt_cannot_go_below_zero():
    ledger = DebtLedger()
    ledger.increase(ALICE, 100)

    with pytest.raises(InsufficientBalanceError):
        ledger.decrease(ALICE, 101)

    assert ledger.minted_of(ALICE) == 100


def test_repaid_debt_disappears():
    ledger = DebtLedger()
    ledger.increase(ALICE, 100)
    ledger.decrease(ALICE, 100)

    assert ledger.accounts() == []
    assert ledger.total_minted == 0


def test_debit_of_nothing_from_an_absent_entry():
    ledger = CollateralLedger()
    ledger.credit(BOB, WETH, 5)

    ledger.debit(ALICE, WBTC, 0)

    assert ledger.balances == {(BOB, WETH): 5}


def test_decrease_of_nothing_without_debt():
    ledger = DebtLedger()

    ledger.decrease(ALICE, 0)

    assert ledger.minted == {}
