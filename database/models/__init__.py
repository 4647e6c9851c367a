from .base import Base, JSONType
from .subsidy import Subsidy
from .usage import AIUsageLog, AIUsageAccount
from .compliance import ComplianceEvent

__all__ = [
    'Base',
    'JSONType',
    'Subsidy',
    'AIUsageLog',
    'AIUsageAccount',
    'ComplianceEvent',
]
