from muselink.models.credit_topup import CreditTopUp
from muselink.models.performance_request import PerformanceRequest
from muselink.models.unlock import Unlock
from muselink.models.user import User

__all__ = ["CreditTopUp", "PerformanceRequest", "Unlock", "User"]
