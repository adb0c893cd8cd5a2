"""Balance rules - pure arithmetic over integer cents"""

from typing import Any, Dict, Iterable, Tuple
from budget_ledger.domain.exceptions import (
    CreditLimitExceededError,
    InsufficientFundsError,
    InvalidAmountError,
)
from budget_ledger.domain.models import WALLET_SIGNS, CARD_SIGNS


def validate_amount(amount_cents: Any) -> int:
    """Reject anything that is not a positive integer number of cents"""
    # bool is an int subclass; True is not one cent
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        raise InvalidAmountError(f"Amount must be an integer number of cents, got {amount_cents!r}")
    if amount_cents <= 0:
        raise InvalidAmountError(f"Amount must be positive, got {amount_cents}")
    return amount_cents


def credit(balance_cents: int, amount_cents: int) -> int:
    """Wallet balance after a credit (no upper bound)"""
    return balance_cents + validate_amount(amount_cents)


def debit(balance_cents: int, amount_cents: int) -> int:
    """
    Wallet balance after a debit.

    Raises:
        InsufficientFundsError: if the balance would go negative
    """
    validate_amount(amount_cents)
    if amount_cents > balance_cents:
        raise InsufficientFundsError(
            f"Insufficient funds: balance {balance_cents} cents, requested {amount_cents} cents"
        )
    return balance_cents - amount_cents


def charge(current_balance_cents: int, limit_cents: int, amount_cents: int) -> int:
    """
    Card balance after a purchase. Reaching the limit exactly is allowed.

    Raises:
        CreditLimitExceededError: if current + amount > limit
    """
    validate_amount(amount_cents)
    new_balance = current_balance_cents + amount_cents
    if new_balance > limit_cents:
        raise CreditLimitExceededError(
            f"Credit limit exceeded: available {limit_cents - current_balance_cents} cents, "
            f"requested {amount_cents} cents"
        )
    return new_balance


def reduce(current_balance_cents: int, amount_cents: int) -> int:
    """Card balance after a payment, floored at zero"""
    validate_amount(amount_cents)
    return max(0, current_balance_cents - amount_cents)


def signed_totals(entries: Iterable[Tuple[str, int]]) -> Dict[str, int]:
    """
    Net effect of (type, amount_cents) entries on a wallet and on a card.

    Returns:
        {"wallet": net_cents, "credit_card": net_cents}
    """
    totals = {"wallet": 0, "credit_card": 0}
    for txn_type, amount in entries:
        totals["wallet"] += WALLET_SIGNS.get(txn_type, 0) * amount
        totals["credit_card"] += CARD_SIGNS.get(txn_type, 0) * amount
    return totals
