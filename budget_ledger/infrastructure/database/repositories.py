"""Data access layer for ledger entities"""

import uuid
from datetime import date
from typing import Dict, List, Optional, Tuple
from sqlalchemy import and_, case, func
from sqlalchemy.orm import Session, joinedload
from budget_ledger.infrastructure.database.models import (
    Category,
    CostCenter,
    CreditCard,
    Installment,
    InstallmentPayment,
    LedgerTransaction,
    User,
    UserCostCenter,
    Wallet,
)
from budget_ledger.domain.models import (
    CREDIT_EXPENSE,
    EXPENSE,
    INCOME,
    INSTALLMENT_ACTIVE,
    MEMBERSHIP_APPROVED,
    MEMBERSHIP_PENDING,
    PAYMENT_OVERDUE,
    PAYMENT_PENDING,
    CategoryTotal,
    ScheduledPayment,
    UserSummary,
)


class UserRepository:
    """Repository for users"""

    def __init__(self, db: Session):
        self.db = db

    def create_user(self, name: str, email: str) -> User:
        db_user = User(name=name, email=email)
        self.db.add(db_user)
        self.db.flush()
        return db_user

    def get_user(self, user_id: uuid.UUID) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()


class CostCenterRepository:
    """Repository for cost centers and memberships"""

    def __init__(self, db: Session):
        self.db = db

    def create_cost_center(
        self,
        code: str,
        name: str,
        admin_user_id: uuid.UUID,
        description: str | None = None,
    ) -> CostCenter:
        db_cost_center = CostCenter(code=code, name=name, admin_user_id=admin_user_id, description=description)
        self.db.add(db_cost_center)
        self.db.flush()  # Get ID without committing
        return db_cost_center

    def get_cost_center(self, cost_center_id: uuid.UUID) -> Optional[CostCenter]:
        return self.db.get(CostCenter, cost_center_id)

    def get_cost_center_by_code(self, code: str) -> Optional[CostCenter]:
        return self.db.query(CostCenter).filter(CostCenter.code == code).first()

    def create_membership(
        self,
        user_id: uuid.UUID,
        cost_center_id: uuid.UUID,
        role: str,
        status: str,
    ) -> UserCostCenter:
        db_membership = UserCostCenter(user_id=user_id, cost_center_id=cost_center_id, role=role, status=status)
        self.db.add(db_membership)
        self.db.flush()
        return db_membership

    def get_membership(self, user_id: uuid.UUID, cost_center_id: uuid.UUID) -> Optional[UserCostCenter]:
        return (
            self.db.query(UserCostCenter)
            .filter(UserCostCenter.user_id == user_id, UserCostCenter.cost_center_id == cost_center_id)
            .first()
        )

    def get_membership_by_id(self, membership_id: uuid.UUID) -> Optional[UserCostCenter]:
        return self.db.get(UserCostCenter, membership_id)

    def get_pending_memberships(self, cost_center_id: uuid.UUID) -> List[UserCostCenter]:
        """Pending join requests with their users loaded"""
        return (
            self.db.query(UserCostCenter)
            .options(joinedload(UserCostCenter.user))
            .filter(
                UserCostCenter.cost_center_id == cost_center_id,
                UserCostCenter.status == MEMBERSHIP_PENDING,
            )
            .order_by(UserCostCenter.requested_at)
            .all()
        )

    def get_user_cost_centers(self, user_id: uuid.UUID) -> List[Tuple[CostCenter, UserCostCenter]]:
        return (
            self.db.query(CostCenter, UserCostCenter)
            .join(UserCostCenter, UserCostCenter.cost_center_id == CostCenter.id)
            .filter(UserCostCenter.user_id == user_id)
            .order_by(CostCenter.name)
            .all()
        )


class WalletRepository:
    """Repository for wallets"""

    def __init__(self, db: Session):
        self.db = db

    def create_wallet(self, **fields) -> Wallet:
        db_wallet = Wallet(**fields)
        self.db.add(db_wallet)
        self.db.flush()
        return db_wallet

    def get_wallet(self, wallet_id: uuid.UUID, for_update: bool = False) -> Optional[Wallet]:
        """Fetch a wallet, optionally taking a row lock (SELECT ... FOR UPDATE)"""
        query = self.db.query(Wallet).filter(Wallet.id == wallet_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.one_or_none()

    def get_wallets(self, cost_center_id: uuid.UUID) -> List[Wallet]:
        return (
            self.db.query(Wallet)
            .filter(Wallet.cost_center_id == cost_center_id)
            .order_by(Wallet.is_default.desc(), Wallet.name)
            .all()
        )

    def get_default_wallet(self, cost_center_id: uuid.UUID) -> Optional[Wallet]:
        return (
            self.db.query(Wallet)
            .filter(Wallet.cost_center_id == cost_center_id, Wallet.is_default.is_(True))
            .first()
        )

    def is_referenced(self, wallet_id: uuid.UUID) -> bool:
        """True when any transaction or installment points at the wallet"""
        has_transactions = (
            self.db.query(LedgerTransaction.id).filter(LedgerTransaction.wallet_id == wallet_id).first()
        )
        has_installments = self.db.query(Installment.id).filter(Installment.wallet_id == wallet_id).first()
        return has_transactions is not None or has_installments is not None

    def delete_wallet(self, wallet: Wallet) -> None:
        self.db.delete(wallet)
        self.db.flush()


class CreditCardRepository:
    """Repository for credit cards"""

    def __init__(self, db: Session):
        self.db = db

    def create_credit_card(self, **fields) -> CreditCard:
        db_card = CreditCard(**fields)
        self.db.add(db_card)
        self.db.flush()
        return db_card

    def get_credit_card(self, card_id: uuid.UUID, for_update: bool = False) -> Optional[CreditCard]:
        query = self.db.query(CreditCard).filter(CreditCard.id == card_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.one_or_none()

    def get_credit_cards(self, cost_center_id: uuid.UUID) -> List[CreditCard]:
        return (
            self.db.query(CreditCard)
            .filter(CreditCard.cost_center_id == cost_center_id)
            .order_by(CreditCard.name)
            .all()
        )


class CategoryRepository:
    """Repository for transaction categories"""

    def __init__(self, db: Session):
        self.db = db

    def create_category(self, **fields) -> Category:
        db_category = Category(**fields)
        self.db.add(db_category)
        self.db.flush()
        return db_category

    def get_category(self, category_id: uuid.UUID) -> Optional[Category]:
        return self.db.get(Category, category_id)

    def get_categories(self, cost_center_id: uuid.UUID, type: str | None = None) -> List[Category]:
        query = self.db.query(Category).filter(Category.cost_center_id == cost_center_id)
        if type is not None:
            query = query.filter(Category.type == type)
        return query.order_by(Category.name).all()


class TransactionRepository:
    """Repository for the append-only transaction log"""

    def __init__(self, db: Session):
        self.db = db

    def add_transaction(self, **fields) -> LedgerTransaction:
        db_transaction = LedgerTransaction(**fields)
        self.db.add(db_transaction)
        self.db.flush()
        return db_transaction

    def get_transaction(self, transaction_id: uuid.UUID) -> Optional[LedgerTransaction]:
        return self.db.get(LedgerTransaction, transaction_id)

    def get_transactions(
        self,
        cost_center_id: uuid.UUID,
        start_date: date | None = None,
        end_date: date | None = None,
        type: str | None = None,
        wallet_id: uuid.UUID | None = None,
        credit_card_id: uuid.UUID | None = None,
        limit: int | None = None,
    ) -> List[LedgerTransaction]:
        """Transactions newest first; start_date inclusive, end_date exclusive"""
        query = self.db.query(LedgerTransaction).filter(LedgerTransaction.cost_center_id == cost_center_id)
        if start_date is not None:
            query = query.filter(LedgerTransaction.date >= start_date)
        if end_date is not None:
            query = query.filter(LedgerTransaction.date < end_date)
        if type is not None:
            query = query.filter(LedgerTransaction.type == type)
        if wallet_id is not None:
            query = query.filter(LedgerTransaction.wallet_id == wallet_id)
        if credit_card_id is not None:
            query = query.filter(LedgerTransaction.credit_card_id == credit_card_id)
        query = query.order_by(LedgerTransaction.date.desc(), LedgerTransaction.created_at.desc())
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count_transactions(self, cost_center_id: uuid.UUID) -> int:
        return (
            self.db.query(func.count(LedgerTransaction.id))
            .filter(LedgerTransaction.cost_center_id == cost_center_id)
            .scalar()
        )

    def sum_by_type_for_wallet(self, wallet_id: uuid.UUID) -> List[Tuple[str, int]]:
        rows = (
            self.db.query(LedgerTransaction.type, func.sum(LedgerTransaction.amount_cents))
            .filter(LedgerTransaction.wallet_id == wallet_id)
            .group_by(LedgerTransaction.type)
            .all()
        )
        return [(txn_type, int(total or 0)) for txn_type, total in rows]

    def sum_by_type_for_card(self, card_id: uuid.UUID) -> List[Tuple[str, int]]:
        rows = (
            self.db.query(LedgerTransaction.type, func.sum(LedgerTransaction.amount_cents))
            .filter(LedgerTransaction.credit_card_id == card_id)
            .group_by(LedgerTransaction.type)
            .all()
        )
        return [(txn_type, int(total or 0)) for txn_type, total in rows]

    def totals_by_type(
        self,
        cost_center_id: uuid.UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Dict[str, int]:
        query = self.db.query(LedgerTransaction.type, func.sum(LedgerTransaction.amount_cents)).filter(
            LedgerTransaction.cost_center_id == cost_center_id
        )
        if start_date is not None:
            query = query.filter(LedgerTransaction.date >= start_date)
        if end_date is not None:
            query = query.filter(LedgerTransaction.date < end_date)
        rows = query.group_by(LedgerTransaction.type).all()
        return {txn_type: int(total or 0) for txn_type, total in rows}

    def totals_by_category(
        self,
        cost_center_id: uuid.UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> List[CategoryTotal]:
        total = func.sum(LedgerTransaction.amount_cents)
        query = (
            self.db.query(
                LedgerTransaction.category_id,
                Category.name,
                LedgerTransaction.type,
                total,
                func.count(LedgerTransaction.id),
            )
            .outerjoin(Category, Category.id == LedgerTransaction.category_id)
            .filter(LedgerTransaction.cost_center_id == cost_center_id)
        )
        if start_date is not None:
            query = query.filter(LedgerTransaction.date >= start_date)
        if end_date is not None:
            query = query.filter(LedgerTransaction.date < end_date)
        rows = (
            query.group_by(LedgerTransaction.category_id, Category.name, LedgerTransaction.type)
            .order_by(total.desc())
            .all()
        )
        return [
            CategoryTotal(
                category_id=category_id,
                category_name=name,
                type=txn_type,
                total_cents=int(amount or 0),
                transaction_count=count,
            )
            for category_id, name, txn_type, amount, count in rows
        ]

    def user_summaries(self, cost_center_id: uuid.UUID) -> List[UserSummary]:
        """Activity of every approved member, busiest first"""
        txn = LedgerTransaction
        transaction_count = func.count(txn.id)
        income = func.coalesce(func.sum(case((txn.type == INCOME, txn.amount_cents), else_=0)), 0)
        expenses = func.coalesce(
            func.sum(case((txn.type.in_([EXPENSE, CREDIT_EXPENSE]), txn.amount_cents), else_=0)), 0
        )
        rows = (
            self.db.query(
                User.id,
                User.name,
                User.email,
                transaction_count,
                income,
                expenses,
                func.max(txn.created_at),
            )
            .join(UserCostCenter, UserCostCenter.user_id == User.id)
            .outerjoin(txn, and_(txn.user_id == User.id, txn.cost_center_id == cost_center_id))
            .filter(
                UserCostCenter.cost_center_id == cost_center_id,
                UserCostCenter.status == MEMBERSHIP_APPROVED,
            )
            .group_by(User.id, User.name, User.email)
            .order_by(transaction_count.desc(), User.name)
            .all()
        )
        return [
            UserSummary(
                user_id=user_id,
                name=name,
                email=email,
                total_transactions=count,
                total_income_cents=int(income_cents),
                total_expenses_cents=int(expense_cents),
                balance_cents=int(income_cents) - int(expense_cents),
                last_transaction_at=last_at,
            )
            for user_id, name, email, count, income_cents, expense_cents, last_at in rows
        ]


class InstallmentRepository:
    """Repository for installments and their payment schedules"""

    def __init__(self, db: Session):
        self.db = db

    def create_installment(
        self,
        cost_center_id: uuid.UUID,
        wallet_id: uuid.UUID,
        description: str,
        total_amount_cents: int,
        start_date: date,
        schedule: List[ScheduledPayment],
    ) -> Installment:
        """Create an installment with all of its payments"""
        db_installment = Installment(
            cost_center_id=cost_center_id,
            wallet_id=wallet_id,
            description=description,
            total_amount_cents=total_amount_cents,
            total_installments=len(schedule),
            paid_installments=0,
            start_date=start_date,
            status=INSTALLMENT_ACTIVE,
        )
        self.db.add(db_installment)
        self.db.flush()

        for scheduled in schedule:
            self.db.add(
                InstallmentPayment(
                    installment_id=db_installment.id,
                    payment_number=scheduled.payment_number,
                    amount_cents=scheduled.amount_cents,
                    due_date=scheduled.due_date,
                    status=PAYMENT_PENDING,
                )
            )
        self.db.flush()
        self.db.refresh(db_installment)

        return db_installment

    def get_installment(self, installment_id: uuid.UUID, for_update: bool = False) -> Optional[Installment]:
        query = self.db.query(Installment).filter(Installment.id == installment_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.one_or_none()

    def get_installments(self, cost_center_id: uuid.UUID, status: str | None = None) -> List[Installment]:
        query = self.db.query(Installment).filter(Installment.cost_center_id == cost_center_id)
        if status is not None:
            query = query.filter(Installment.status == status)
        return query.order_by(Installment.start_date.desc(), Installment.created_at.desc()).all()

    def get_payment(self, payment_id: uuid.UUID, for_update: bool = False) -> Optional[InstallmentPayment]:
        query = self.db.query(InstallmentPayment).filter(InstallmentPayment.id == payment_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.one_or_none()

    def get_upcoming_payments(self, cost_center_id: uuid.UUID, due_before: date) -> List[InstallmentPayment]:
        """Unpaid payments of active installments due strictly before the given date"""
        return (
            self.db.query(InstallmentPayment)
            .join(Installment, Installment.id == InstallmentPayment.installment_id)
            .options(joinedload(InstallmentPayment.installment))
            .filter(
                Installment.cost_center_id == cost_center_id,
                Installment.status == INSTALLMENT_ACTIVE,
                InstallmentPayment.status.in_([PAYMENT_PENDING, PAYMENT_OVERDUE]),
                InstallmentPayment.due_date < due_before,
            )
            .order_by(InstallmentPayment.due_date, InstallmentPayment.payment_number)
            .all()
        )
