"""
Exception hierarchy for the account intelligence core.

Classification outcomes (insufficient-data, on-track/healthy, warning,
critical) are normal results and never appear here. Exceptions cover three
separate failure categories so callers can tell them apart:

- RepositoryError: the data store or its connection failed. Transient and
  infrastructural; the API layer answers 503 and a retry may succeed.
- NotFoundError: a caller asked about an account, sales rep or sample
  transfer that does not exist in the tenant. The API layer answers 404.
- SampleLedgerError: a sample ledger write was refused by a business rule.
"""


class IntelligenceError(Exception):
    """Base class for every error raised by the account intelligence core."""


class RepositoryError(IntelligenceError):
    """The underlying store failed to answer a read or accept a write."""

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Repository operation '{operation}' failed: {cause}")


class NotFoundError(IntelligenceError):
    """A referenced entity does not exist within the tenant."""

    entity = "entity"

    def __init__(self, entity_id: str, tenant_id: str):
        self.entity_id = entity_id
        self.tenant_id = tenant_id
        super().__init__(f"{self.entity} '{entity_id}' not found for tenant '{tenant_id}'")


class AccountNotFoundError(NotFoundError):
    entity = "Account"


class SalesRepNotFoundError(NotFoundError):
    entity = "Sales rep"


class SampleTransferNotFoundError(NotFoundError):
    entity = "Sample transfer"


class SampleLedgerError(IntelligenceError):
    """A sample transfer or tasting feedback write was rejected."""


class ManagerApprovalRequiredError(SampleLedgerError):
    """The rep has reached the approval threshold for the month."""

    def __init__(self, sales_rep_id: str, pulls_this_month: int, threshold: int):
        self.sales_rep_id = sales_rep_id
        self.pulls_this_month = pulls_this_month
        self.threshold = threshold
        super().__init__(
            f"Sales rep '{sales_rep_id}' has {pulls_this_month} sample pulls this month "
            f"(approval required above {threshold}); approvedByManagerId is required"
        )
