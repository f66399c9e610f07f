"""
revenue_services -- stateful orchestration over the revenue engines.

Usage:
    from revenue_services import PortfolioSegmentationService, RevenueReportService
"""

from revenue_services.portfolio_service import PortfolioSegmentationService
from revenue_services.report_export import export_year_report_xlsx
from revenue_services.report_service import (
    AccountReportRow,
    RevenueReportService,
    YearReport,
)

__all__ = [
    "AccountReportRow",
    "PortfolioSegmentationService",
    "RevenueReportService",
    "YearReport",
    "export_year_report_xlsx",
]
