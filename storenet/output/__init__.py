"""
StoreNet Output Module
=======================

Rich console display and JSON / HTML report generation.
"""

from storenet.output.console import StoreNetConsoleOutput
from storenet.output.report import StoreNetReportGenerator

__all__ = ["StoreNetConsoleOutput", "StoreNetReportGenerator"]
