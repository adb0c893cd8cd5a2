"""Transfer coordinator - moves funds between two wallets of one cost center"""

import uuid
from dataclasses import dataclass
from datetime import date
from sqlalchemy.orm import Session
from budget_ledger.domain import balances
from budget_ledger.domain.exceptions import SameWalletError
from budget_ledger.domain.models import TRANSFER_IN, TRANSFER_OUT
from budget_ledger.infrastructure.database.models import LedgerTransaction, Wallet
from budget_ledger.infrastructure.database.session import unit_of_work
from budget_ledger.services.balance_ledger import BalanceLedger
from budget_ledger.services.transaction_ledger import TransactionLedger


@dataclass
class TransferResult:
    """Both legs of a committed transfer and the wallets they touched"""

    transfer_pair_id: uuid.UUID
    outgoing: LedgerTransaction
    incoming: LedgerTransaction
    from_wallet: Wallet
    to_wallet: Wallet


class TransferCoordinator:
    def __init__(self, db: Session):
        self.db = db
        self.balance_ledger = BalanceLedger(db)
        self.transaction_ledger = TransactionLedger(db)

    def transfer(
        self,
        cost_center_id: uuid.UUID,
        user_id: uuid.UUID,
        from_wallet_id: uuid.UUID,
        to_wallet_id: uuid.UUID,
        amount_cents: int,
        description: str,
        transfer_date: date | None = None,
    ) -> TransferResult:
        """
        Move money from one wallet to another as a single unit of work.

        Both wallets are locked before the funds check, so no reader sees the
        source debited without the destination credited, and two concurrent
        transfers cannot spend the same balance twice.

        Raises:
            SameWalletError: source and destination are the same wallet
            InvalidAmountError: amount is not a positive number of cents
            NotFoundError: user is not an approved member, or either wallet is
                missing or outside the cost center
            InsufficientFundsError: source balance is below the amount
        """
        if from_wallet_id == to_wallet_id:
            raise SameWalletError("Cannot transfer a wallet's funds to itself")
        balances.validate_amount(amount_cents)

        with unit_of_work(self.db):
            self.transaction_ledger.require_member(cost_center_id, user_id)
            locked = self.balance_ledger.lock_wallets([from_wallet_id, to_wallet_id], cost_center_id)
            from_wallet, to_wallet = locked[from_wallet_id], locked[to_wallet_id]

            self.balance_ledger.debit_wallet(from_wallet_id, amount_cents)
            self.balance_ledger.credit_wallet(to_wallet_id, amount_cents)

            pair_id = uuid.uuid4()
            outgoing = self.transaction_ledger.append(
                cost_center_id,
                user_id,
                TRANSFER_OUT,
                f"Transfer to {to_wallet.name}: {description}",
                amount_cents,
                wallet_id=from_wallet_id,
                date=transfer_date,
                transfer_pair_id=pair_id,
            )
            incoming = self.transaction_ledger.append(
                cost_center_id,
                user_id,
                TRANSFER_IN,
                f"Transfer from {from_wallet.name}: {description}",
                amount_cents,
                wallet_id=to_wallet_id,
                date=transfer_date,
                transfer_pair_id=pair_id,
            )

        return TransferResult(
            transfer_pair_id=pair_id,
            outgoing=outgoing,
            incoming=incoming,
            from_wallet=from_wallet,
            to_wallet=to_wallet,
        )
