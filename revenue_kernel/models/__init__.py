"""ORM models for accounts and estimates."""

from revenue_kernel.models.account import AccountModel
from revenue_kernel.models.estimate import EstimateModel

__all__ = ["AccountModel", "EstimateModel"]
