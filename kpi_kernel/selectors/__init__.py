"""Read-only selectors over current results and the submission log."""

from kpi_kernel.selectors.performance_selector import PerformanceSelector

__all__ = ["PerformanceSelector"]
