"""Cost governance: daily AI usage caps and counters."""

from remindr.governance.usage_caps import CHECK_FAILED, GLOBAL_LIMIT, USER_LIMIT, CapDecision, UsageCapGuard
from remindr.governance.usage_counters import UsageCounterWriter

__all__ = [
    "CHECK_FAILED",
    "CapDecision",
    "GLOBAL_LIMIT",
    "USER_LIMIT",
    "UsageCapGuard",
    "UsageCounterWriter",
]
