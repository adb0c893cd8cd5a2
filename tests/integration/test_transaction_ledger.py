"""Integration tests for the transaction log, its reports and reconciliation"""

import uuid
import pytest
from datetime import date
from budget_ledger.domain.exceptions import (
    InsufficientFundsError,
    InvalidTransactionError,
    NotFoundError,
)
from budget_ledger.domain.models import EXPENSE, INCOME, PAYMENT_PENDING
from budget_ledger.infrastructure.database.models import LedgerTransaction
from budget_ledger.services.credit_cards import CreditCardEngine
from budget_ledger.services.installments import InstallmentScheduler
from budget_ledger.services.transaction_ledger import TransactionLedger
from budget_ledger.services.transfers import TransferCoordinator


@pytest.fixture
def ledger(db) -> TransactionLedger:
    return TransactionLedger(db)


@pytest.fixture
def groceries(directory, cost_center):
    return directory.create_category(cost_center.id, "Groceries", "expense")


def test_opening_balance_is_logged_as_income(db, ledger, cost_center, wallet_a):
    rows = ledger.list_transactions(cost_center.id, wallet_id=wallet_a.id)

    assert len(rows) == 1
    assert rows[0].type == INCOME
    assert rows[0].description == "Opening balance"
    assert rows[0].amount_cents == 100


def test_record_income_and_expense_move_wallet(db, ledger, cost_center, user, wallet_a, groceries):
    ledger.record_income(cost_center.id, user.id, wallet_a.id, 500, "Salary")
    expense = ledger.record_expense(
        cost_center.id, user.id, wallet_a.id, 250, "Market", category_id=groceries.id, is_fixed=True
    )

    db.refresh(wallet_a)
    assert wallet_a.balance_cents == 350
    assert expense.type == EXPENSE
    assert expense.category_id == groceries.id
    assert expense.is_fixed is True
    assert ledger.wallet_balance_from_log(wallet_a.id) == 350


def test_record_expense_insufficient_funds(db, ledger, cost_center, user, wallet_b):
    with pytest.raises(InsufficientFundsError):
        ledger.record_expense(cost_center.id, user.id, wallet_b.id, 51, "Concert")

    db.refresh(wallet_b)
    assert wallet_b.balance_cents == 50
    assert db.query(LedgerTransaction).filter(LedgerTransaction.type == EXPENSE).count() == 0


def test_record_expense_category_from_other_cost_center(db, ledger, directory, cost_center, user, wallet_a):
    other = directory.create_cost_center(user.id, "Office", code="2025OFF01")
    foreign = directory.create_category(other.id, "Supplies", "expense")

    with pytest.raises(NotFoundError):
        ledger.record_expense(cost_center.id, user.id, wallet_a.id, 10, "Pens", category_id=foreign.id)


def test_record_income_by_non_member(db, ledger, directory, cost_center, wallet_a):
    outsider = directory.create_user("Carla Dias", "carla@example.com")

    with pytest.raises(NotFoundError):
        ledger.record_income(cost_center.id, outsider.id, wallet_a.id, 500, "Gift")
    with pytest.raises(NotFoundError):
        ledger.record_expense(cost_center.id, uuid.uuid4(), wallet_a.id, 10, "Snack")

    db.refresh(wallet_a)
    assert wallet_a.balance_cents == 100
    assert len(ledger.list_transactions(cost_center.id, wallet_id=wallet_a.id)) == 1


def test_create_wallet_by_non_member(db, directory, cost_center):
    outsider = directory.create_user("Carla Dias", "carla@example.com")

    with pytest.raises(NotFoundError):
        directory.create_wallet(cost_center.id, outsider.id, "Stash", "cash", opening_balance_cents=300)

    assert [w.name for w in directory.list_wallets(cost_center.id)] == ["Main Wallet"]


def test_expense_tagged_with_installment_payment(db, ledger, cost_center, user, wallet_a):
    tv = InstallmentScheduler(db).create_installment(cost_center.id, wallet_a.id, "TV", 90, 3, date(2025, 5, 1))
    second = tv.payments[1]

    expense = ledger.record_expense(
        cost_center.id, user.id, wallet_a.id, 30, "TV 2/3", installment_payment_id=second.id
    )

    assert expense.installment_id == tv.id
    assert expense.current_installment == 2
    assert expense.total_installments == 3
    db.refresh(second)
    assert second.status == PAYMENT_PENDING


def test_expense_tagged_with_foreign_installment_payment(db, ledger, directory, cost_center, user, wallet_a):
    other = directory.create_cost_center(user.id, "Office", code="2025OFF01")
    office_wallet = directory.create_wallet(other.id, user.id, "Petty cash", "cash")
    desk = InstallmentScheduler(db).create_installment(other.id, office_wallet.id, "Desk", 400, 2, date(2025, 5, 1))

    with pytest.raises(NotFoundError):
        ledger.record_expense(
            cost_center.id, user.id, wallet_a.id, 30, "Desk", installment_payment_id=desk.payments[0].id
        )

    db.refresh(wallet_a)
    assert wallet_a.balance_cents == 100


def test_append_rejects_mismatched_references(ledger, cost_center, user, wallet_a, credit_card):
    with pytest.raises(InvalidTransactionError):
        ledger.append(cost_center.id, user.id, "credit_expense", "Bad", 10, wallet_id=wallet_a.id)
    with pytest.raises(InvalidTransactionError):
        ledger.append(cost_center.id, user.id, "expense", "Bad", 10)
    with pytest.raises(InvalidTransactionError):
        ledger.append(cost_center.id, user.id, "refund", "Bad", 10, wallet_id=wallet_a.id)


def test_amend_descriptive_fields(db, ledger, cost_center, user, wallet_a, groceries):
    txn = ledger.record_expense(cost_center.id, user.id, wallet_a.id, 30, "Market")

    amended = ledger.amend(
        cost_center.id,
        txn.id,
        {"description": "Farmers market", "notes": "Organic", "date": date(2025, 4, 2), "category_id": groceries.id},
    )

    assert amended.description == "Farmers market"
    assert amended.notes == "Organic"
    assert amended.date == date(2025, 4, 2)
    assert amended.category_id == groceries.id
    assert amended.amount_cents == 30


def test_amend_ignores_null_description(ledger, cost_center, user, wallet_a):
    txn = ledger.record_expense(cost_center.id, user.id, wallet_a.id, 30, "Market")

    amended = ledger.amend(cost_center.id, txn.id, {"description": None, "notes": None})

    assert amended.description == "Market"
    assert amended.notes is None


def test_amend_rejects_amount_change(db, ledger, cost_center, user, wallet_a):
    txn = ledger.record_expense(cost_center.id, user.id, wallet_a.id, 30, "Market")

    with pytest.raises(InvalidTransactionError):
        ledger.amend(cost_center.id, txn.id, {"amount_cents": 1, "wallet_id": uuid.uuid4()})

    db.refresh(txn)
    db.refresh(wallet_a)
    assert txn.amount_cents == 30
    assert wallet_a.balance_cents == 70


def test_list_transactions_filters(ledger, cost_center, user, wallet_a, wallet_b):
    ledger.record_expense(cost_center.id, user.id, wallet_a.id, 10, "Bus", date=date(2025, 3, 1))
    ledger.record_expense(cost_center.id, user.id, wallet_a.id, 20, "Taxi", date=date(2025, 3, 15))
    ledger.record_expense(cost_center.id, user.id, wallet_b.id, 5, "Gum", date=date(2025, 4, 1))

    march = ledger.list_transactions(
        cost_center.id, start_date=date(2025, 3, 1), end_date=date(2025, 4, 1), type=EXPENSE
    )
    assert [t.description for t in march] == ["Taxi", "Bus"]

    from_b = ledger.list_transactions(cost_center.id, wallet_id=wallet_b.id, type=EXPENSE)
    assert [t.description for t in from_b] == ["Gum"]

    assert len(ledger.list_transactions(cost_center.id, limit=2)) == 2


def test_totals_by_type_and_category(ledger, cost_center, user, wallet_a, credit_card, groceries):
    ledger.record_expense(cost_center.id, user.id, wallet_a.id, 40, "Market", category_id=groceries.id)
    CreditCardEngine(ledger.db).charge_for_purchase(
        cost_center.id, user.id, credit_card.id, 60, "Market", category_id=groceries.id
    )

    totals = ledger.totals_by_type(cost_center.id)
    assert totals["income"] == 100
    assert totals["expense"] == 40
    assert totals["credit_expense"] == 60
    assert totals["transfer_in"] == 0

    by_category = {(t.category_name, t.type): t for t in ledger.totals_by_category(cost_center.id)}
    assert by_category[("Groceries", "expense")].total_cents == 40
    assert by_category[("Groceries", "credit_expense")].total_cents == 60
    assert by_category[(None, "income")].transaction_count == 1


def test_user_report_counts_approved_members(db, directory, ledger, cost_center, user, wallet_a, credit_card):
    partner = directory.create_user("Bruno Lima", "bruno@example.com")
    membership = directory.join_cost_center(partner.id, cost_center.code)
    outsider = directory.create_user("Carla Dias", "carla@example.com")
    directory.join_cost_center(outsider.id, cost_center.code)
    directory.approve_membership(cost_center.id, membership.id)

    ledger.record_expense(cost_center.id, partner.id, wallet_a.id, 30, "Lunch")
    CreditCardEngine(db).charge_for_purchase(cost_center.id, partner.id, credit_card.id, 20, "Cinema")
    ledger.record_income(cost_center.id, partner.id, wallet_a.id, 70, "Refund")

    report = {summary.email: summary for summary in ledger.user_report(cost_center.id)}

    assert set(report) == {"ana@example.com", "bruno@example.com"}
    bruno = report["bruno@example.com"]
    assert bruno.total_transactions == 3
    assert bruno.total_income_cents == 70
    assert bruno.total_expenses_cents == 50
    assert bruno.balance_cents == 20
    assert bruno.last_transaction_at is not None
    assert report["ana@example.com"].total_income_cents == 100


def test_reconcile_after_mixed_operations(db, ledger, cost_center, user, wallet_a, wallet_b, credit_card):
    """Test every stored balance equals the signed sum of its log"""
    TransferCoordinator(db).transfer(cost_center.id, user.id, wallet_a.id, wallet_b.id, 60, "Savings")
    ledger.record_income(cost_center.id, user.id, wallet_a.id, 400, "Salary")
    ledger.record_expense(cost_center.id, user.id, wallet_b.id, 25, "Books")
    cards = CreditCardEngine(db)
    cards.charge_for_purchase(cost_center.id, user.id, credit_card.id, 300, "Tickets")
    cards.pay_bill(cost_center.id, user.id, credit_card.id, 120, wallet_a.id)
    InstallmentScheduler(db).create_installment(cost_center.id, wallet_a.id, "TV", 900, 3, date(2025, 5, 1))

    # Rejected operations leave no trace
    with pytest.raises(InsufficientFundsError):
        ledger.record_expense(cost_center.id, user.id, wallet_b.id, 10_000, "Car")

    checks = ledger.reconcile(cost_center.id)

    assert len(checks) == 4  # default wallet, two wallets, one card
    assert all(check.consistent for check in checks)
    by_id = {check.account_id: check for check in checks}
    assert by_id[wallet_a.id].ledger_cents == 100 - 60 + 400 - 120
    assert by_id[wallet_b.id].ledger_cents == 50 + 60 - 25
    assert by_id[credit_card.id].ledger_cents == 180


def test_reconcile_reports_drift(db, ledger, cost_center, wallet_a):
    wallet_a.balance_cents = 999
    db.commit()

    drifted = [check for check in ledger.reconcile(cost_center.id) if not check.consistent]

    assert [(check.account_id, check.drift_cents) for check in drifted] == [(wallet_a.id, 899)]
