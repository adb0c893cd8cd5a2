"""Cost center directory - members, wallets, cards and categories of a shared budget"""

import secrets
import string
import uuid
from datetime import date
from typing import List, Tuple
from sqlalchemy.orm import Session
from budget_ledger.config import settings
from budget_ledger.domain import balances
from budget_ledger.domain.exceptions import DuplicateError, NotFoundError, WalletInUseError
from budget_ledger.domain.models import (
    INCOME,
    MEMBERSHIP_APPROVED,
    MEMBERSHIP_PENDING,
    MEMBERSHIP_REJECTED,
    ROLE_ADMIN,
    ROLE_COLLABORATOR,
)
from budget_ledger.infrastructure.database.models import (
    Category,
    CostCenter,
    CreditCard,
    User,
    UserCostCenter,
    Wallet,
)
from budget_ledger.infrastructure.database.repositories import (
    CategoryRepository,
    CostCenterRepository,
    CreditCardRepository,
    UserRepository,
    WalletRepository,
)
from budget_ledger.infrastructure.database.session import unit_of_work
from budget_ledger.services.balance_ledger import BalanceLedger
from budget_ledger.services.transaction_ledger import TransactionLedger
from budget_ledger.utils.date_utils import utc_now

CODE_ATTEMPTS = 5


def generate_join_code(today: date | None = None) -> str:
    """Join code such as 2025ABC01: year, three letters, two digits"""
    year = (today or date.today()).year
    letters = "".join(secrets.choice(string.ascii_uppercase) for _ in range(3))
    digits = "".join(secrets.choice(string.digits) for _ in range(2))
    return f"{year}{letters}{digits}"


class CostCenterDirectory:
    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.cost_centers = CostCenterRepository(db)
        self.wallets = WalletRepository(db)
        self.cards = CreditCardRepository(db)
        self.categories = CategoryRepository(db)

    # Users

    def create_user(self, name: str, email: str) -> User:
        with unit_of_work(self.db):
            if self.users.get_user_by_email(email) is not None:
                raise DuplicateError(f"Email {email} is already registered")
            return self.users.create_user(name=name, email=email)

    def get_user(self, user_id: uuid.UUID) -> User:
        user = self.users.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    # Cost centers

    def create_cost_center(
        self,
        admin_user_id: uuid.UUID,
        name: str,
        description: str | None = None,
        code: str | None = None,
    ) -> CostCenter:
        """Create a cost center with its admin membership and default wallet"""
        with unit_of_work(self.db):
            self.get_user(admin_user_id)

            if code is None:
                code = self._unused_code()
            elif self.cost_centers.get_cost_center_by_code(code) is not None:
                raise DuplicateError(f"Cost center code {code} is taken")

            cost_center = self.cost_centers.create_cost_center(
                code=code,
                name=name,
                admin_user_id=admin_user_id,
                description=description,
            )
            membership = self.cost_centers.create_membership(
                user_id=admin_user_id,
                cost_center_id=cost_center.id,
                role=ROLE_ADMIN,
                status=MEMBERSHIP_APPROVED,
            )
            membership.approved_at = utc_now()
            self.wallets.create_wallet(
                cost_center_id=cost_center.id,
                name=settings.default_wallet_name,
                type="checking",
                balance_cents=0,
                is_default=True,
            )

        return cost_center

    def _unused_code(self) -> str:
        for _ in range(CODE_ATTEMPTS):
            code = generate_join_code()
            if self.cost_centers.get_cost_center_by_code(code) is None:
                return code
        raise DuplicateError("Could not generate an unused cost center code")

    def get_cost_center(self, cost_center_id: uuid.UUID) -> CostCenter:
        cost_center = self.cost_centers.get_cost_center(cost_center_id)
        if cost_center is None:
            raise NotFoundError("Cost center", cost_center_id)
        return cost_center

    def list_user_cost_centers(self, user_id: uuid.UUID) -> List[Tuple[CostCenter, UserCostCenter]]:
        self.get_user(user_id)
        return self.cost_centers.get_user_cost_centers(user_id)

    # Memberships

    def join_cost_center(self, user_id: uuid.UUID, code: str) -> UserCostCenter:
        """Request to join; an admin approves or rejects the pending membership"""
        with unit_of_work(self.db):
            self.get_user(user_id)
            cost_center = self.cost_centers.get_cost_center_by_code(code)
            if cost_center is None:
                raise NotFoundError("Cost center", code)
            if self.cost_centers.get_membership(user_id, cost_center.id) is not None:
                raise DuplicateError("Already a member of this cost center")
            return self.cost_centers.create_membership(
                user_id=user_id,
                cost_center_id=cost_center.id,
                role=ROLE_COLLABORATOR,
                status=MEMBERSHIP_PENDING,
            )

    def list_pending_memberships(self, cost_center_id: uuid.UUID) -> List[UserCostCenter]:
        self.get_cost_center(cost_center_id)
        return self.cost_centers.get_pending_memberships(cost_center_id)

    def approve_membership(self, cost_center_id: uuid.UUID, membership_id: uuid.UUID) -> UserCostCenter:
        with unit_of_work(self.db):
            membership = self._membership(cost_center_id, membership_id)
            membership.status = MEMBERSHIP_APPROVED
            membership.approved_at = utc_now()
            self.db.flush()
        return membership

    def reject_membership(self, cost_center_id: uuid.UUID, membership_id: uuid.UUID) -> UserCostCenter:
        with unit_of_work(self.db):
            membership = self._membership(cost_center_id, membership_id)
            membership.status = MEMBERSHIP_REJECTED
            membership.approved_at = None
            self.db.flush()
        return membership

    def _membership(self, cost_center_id: uuid.UUID, membership_id: uuid.UUID) -> UserCostCenter:
        membership = self.cost_centers.get_membership_by_id(membership_id)
        if membership is None or membership.cost_center_id != cost_center_id:
            raise NotFoundError("Membership", membership_id)
        return membership

    # Wallets

    def create_wallet(
        self,
        cost_center_id: uuid.UUID,
        user_id: uuid.UUID,
        name: str,
        type: str,
        opening_balance_cents: int = 0,
        is_default: bool = False,
        color: str | None = None,
        icon: str | None = None,
    ) -> Wallet:
        """
        Create a wallet. A non-zero opening balance goes through the balance
        ledger and is logged as income, so the wallet matches its log from day one.
        A new default wallet demotes the previous one.
        """
        with unit_of_work(self.db):
            self.get_cost_center(cost_center_id)
            TransactionLedger(self.db).require_member(cost_center_id, user_id)

            if is_default:
                current_default = self.wallets.get_default_wallet(cost_center_id)
                if current_default is not None:
                    current_default.is_default = False
                    self.db.flush()

            fields = {"cost_center_id": cost_center_id, "name": name, "type": type, "is_default": is_default}
            if color is not None:
                fields["color"] = color
            if icon is not None:
                fields["icon"] = icon
            wallet = self.wallets.create_wallet(balance_cents=0, **fields)

            if opening_balance_cents:
                balances.validate_amount(opening_balance_cents)
                BalanceLedger(self.db).credit_wallet(wallet.id, opening_balance_cents)
                TransactionLedger(self.db).append(
                    cost_center_id,
                    user_id,
                    INCOME,
                    "Opening balance",
                    opening_balance_cents,
                    wallet_id=wallet.id,
                )

        return wallet

    def list_wallets(self, cost_center_id: uuid.UUID) -> List[Wallet]:
        return self.wallets.get_wallets(cost_center_id)

    def get_wallet(self, cost_center_id: uuid.UUID, wallet_id: uuid.UUID) -> Wallet:
        wallet = self.wallets.get_wallet(wallet_id)
        if wallet is None or wallet.cost_center_id != cost_center_id:
            raise NotFoundError("Wallet", wallet_id)
        return wallet

    def delete_wallet(self, cost_center_id: uuid.UUID, wallet_id: uuid.UUID) -> None:
        """Only non-default wallets without ledger history can be removed"""
        with unit_of_work(self.db):
            wallet = self.get_wallet(cost_center_id, wallet_id)
            if wallet.is_default:
                raise WalletInUseError(f"{wallet.name} is the default wallet")
            if self.wallets.is_referenced(wallet.id):
                raise WalletInUseError(f"{wallet.name} has transactions or installments")
            self.wallets.delete_wallet(wallet)

    # Credit cards

    def create_credit_card(
        self,
        cost_center_id: uuid.UUID,
        name: str,
        limit_cents: int,
        due_day: int,
        closing_day: int,
        color: str | None = None,
        icon: str | None = None,
    ) -> CreditCard:
        balances.validate_amount(limit_cents)
        with unit_of_work(self.db):
            self.get_cost_center(cost_center_id)
            fields = {}
            if color is not None:
                fields["color"] = color
            if icon is not None:
                fields["icon"] = icon
            return self.cards.create_credit_card(
                cost_center_id=cost_center_id,
                name=name,
                limit_cents=limit_cents,
                current_balance_cents=0,
                due_day=due_day,
                closing_day=closing_day,
                **fields,
            )

    def list_credit_cards(self, cost_center_id: uuid.UUID) -> List[CreditCard]:
        return self.cards.get_credit_cards(cost_center_id)

    # Categories

    def create_category(
        self,
        cost_center_id: uuid.UUID,
        name: str,
        type: str,
        color: str | None = None,
        icon: str | None = None,
        is_default: bool = False,
    ) -> Category:
        with unit_of_work(self.db):
            self.get_cost_center(cost_center_id)
            return self.categories.create_category(
                cost_center_id=cost_center_id,
                name=name,
                type=type,
                color=color,
                icon=icon,
                is_default=is_default,
            )

    def list_categories(self, cost_center_id: uuid.UUID, type: str | None = None) -> List[Category]:
        return self.categories.get_categories(cost_center_id, type=type)
