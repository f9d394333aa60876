"""Issue attention signals for mirrored GitHub work items.

Derives status and "needs attention" flags for mirrored issues, pull
requests and discussions:
- Business-day and business-hour distances that skip weekends and holidays
- One authoritative issue status reconciled from the project board and the
  locally recorded activity history, locked while the board shows progress
- Independent attention flags from configurable business-day thresholds
"""

__version__ = "1.0.0"
