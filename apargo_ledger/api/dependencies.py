"""Dependency injection for FastAPI endpoints"""

from datetime import date

from fastapi import Request

from apargo_ledger.config import settings
from apargo_ledger.domain.strategies import MaintenanceFeeExpenseStrategy, StrategyRegistry
from apargo_ledger.infrastructure.clients.reporting import ReportingClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_today() -> date:
    """Clock used by the scheduler; overridden in tests"""
    return date.today()


def get_strategy_registry() -> StrategyRegistry:
    """Fresh registry: standard split plus the maintenance-fee strategy"""
    return StrategyRegistry([MaintenanceFeeExpenseStrategy(settings.maintenance_category_ids)])


def get_reporting_client() -> ReportingClient:
    """Provide reporting webhook client instance"""
    return ReportingClient()
