from database.repositories.base import BaseRepository
from database.repositories.subsidy import SubsidyRepository
from database.repositories.usage import UsageRepository
from database.repositories.compliance import ComplianceRepository

__all__ = [
    'BaseRepository',
    'SubsidyRepository',
    'UsageRepository',
    'ComplianceRepository',
]
