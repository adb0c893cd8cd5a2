"""Balance ledger - the only writer of wallet and credit card balances"""

import uuid
from typing import Dict, Iterable
from sqlalchemy.orm import Session
from budget_ledger.domain import balances
from budget_ledger.domain.exceptions import NotFoundError
from budget_ledger.infrastructure.database.models import CreditCard, Wallet
from budget_ledger.infrastructure.database.repositories import CreditCardRepository, WalletRepository


class BalanceLedger:
    """
    Mutation primitives for balances.

    Every method locks the row (SELECT ... FOR UPDATE) before checking it, so
    concurrent debits are serialized on the wallet and cannot both pass the
    funds check against a stale balance. Callers run these inside a unit of
    work; nothing here commits.
    """

    def __init__(self, db: Session):
        self.db = db
        self.wallets = WalletRepository(db)
        self.cards = CreditCardRepository(db)

    def lock_wallet(self, wallet_id: uuid.UUID, cost_center_id: uuid.UUID | None = None) -> Wallet:
        """Lock a wallet; a wallet outside the given cost center counts as missing"""
        wallet = self.wallets.get_wallet(wallet_id, for_update=True)
        if wallet is None or (cost_center_id is not None and wallet.cost_center_id != cost_center_id):
            raise NotFoundError("Wallet", wallet_id)
        return wallet

    def lock_wallets(
        self,
        wallet_ids: Iterable[uuid.UUID],
        cost_center_id: uuid.UUID | None = None,
    ) -> Dict[uuid.UUID, Wallet]:
        """Lock several wallets in a stable order to avoid deadlocks between transfers"""
        return {
            wallet_id: self.lock_wallet(wallet_id, cost_center_id)
            for wallet_id in sorted(set(wallet_ids), key=str)
        }

    def lock_card(self, card_id: uuid.UUID, cost_center_id: uuid.UUID | None = None) -> CreditCard:
        card = self.cards.get_credit_card(card_id, for_update=True)
        if card is None or (cost_center_id is not None and card.cost_center_id != cost_center_id):
            raise NotFoundError("Credit card", card_id)
        return card

    def credit_wallet(self, wallet_id: uuid.UUID, amount_cents: int) -> Wallet:
        wallet = self.lock_wallet(wallet_id)
        wallet.balance_cents = balances.credit(wallet.balance_cents, amount_cents)
        self.db.flush()
        return wallet

    def debit_wallet(self, wallet_id: uuid.UUID, amount_cents: int) -> Wallet:
        """Raises InsufficientFundsError if the wallet cannot cover the amount"""
        wallet = self.lock_wallet(wallet_id)
        wallet.balance_cents = balances.debit(wallet.balance_cents, amount_cents)
        self.db.flush()
        return wallet

    def charge_card(self, card_id: uuid.UUID, amount_cents: int) -> CreditCard:
        """Raises CreditLimitExceededError if the charge would pass the limit"""
        card = self.lock_card(card_id)
        card.current_balance_cents = balances.charge(card.current_balance_cents, card.limit_cents, amount_cents)
        self.db.flush()
        return card

    def reduce_card_balance(self, card_id: uuid.UUID, amount_cents: int) -> CreditCard:
        card = self.lock_card(card_id)
        card.current_balance_cents = balances.reduce(card.current_balance_cents, amount_cents)
        self.db.flush()
        return card
