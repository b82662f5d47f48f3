"""
KPI Kernel - period and performance engine

Tracks recurring staff KPIs with:
- Saturday-to-Friday weekly and previous-month monthly accounting periods
- Holiday-aware submission deadlines
- One current result per KPI/period plus an append-only submission log
- Monthly rollups from weekly or daily entries
- Semaphore scoring for current and historical periods
"""

__version__ = "0.1.0"
