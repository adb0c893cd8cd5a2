"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    code = "domain_error"


class InsufficientFundsError(DomainException):
    """Wallet debit or card payment exceeds the available balance"""

    code = "insufficient_funds"


class CreditLimitExceededError(DomainException):
    """Charge would push the card balance over its limit"""

    code = "credit_limit_exceeded"


class InvalidAmountError(DomainException):
    """Amount is non-positive, malformed or not allowed for the operation"""

    code = "invalid_amount"


class InvalidInstallmentCountError(DomainException):
    """Installment count outside the allowed range"""

    code = "invalid_installment_count"


class NotFoundError(DomainException):
    """Referenced entity does not exist or belongs to another cost center"""

    code = "not_found"

    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class SameWalletError(DomainException):
    """Transfer source and destination are the same wallet"""

    code = "same_wallet"


class InstallmentNotActiveError(DomainException):
    """Operation requires an active installment"""

    code = "installment_not_active"


class WalletInUseError(DomainException):
    """Wallet is the default wallet or is referenced by ledger records"""

    code = "wallet_in_use"


class DuplicateError(DomainException):
    """Unique business key already taken"""

    code = "duplicate"


class InvalidTransactionError(DomainException):
    """Transaction type does not match the wallet/card references"""

    code = "invalid_transaction"
