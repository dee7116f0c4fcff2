"""
Backend for the volunteer event admin dashboard.

This package turns the rows of the hosted volunteer database into the
chart-ready insights the dashboard renders, and serves the CRUD, chat, e-mail
and image upload endpoints the admin screens call.
"""

from .dataset import InsightsDataset  # noqa: F401
from .models import (  # noqa: F401
    DashboardStats,
    EventInsights,
    FeedbackInsights,
    TaskInsights,
    VolunteerInsights,
)
from .repository import (  # noqa: F401
    BackendError,
    InsightsDataRepository,
    RecordNotFoundError,
    SQLDashboardRepository,
    TableNotFoundError,
    is_table_not_found_error,
)
from .service import (  # noqa: F401
    DashboardService,
    InsightsAggregator,
    InsightsReport,
    InsightsService,
)
