"""Public interface for the ``spend_analytics`` package.

Symbol re-exports only; no runtime logic lives here. The stable surface is:

- ingestion: :func:`ingest`, :func:`ingest_path`
- aggregation: :func:`calculate_categories`, :func:`calculate_summary_statistics`,
  :func:`calculate_time_periods`, :func:`calculate_net_spending_by_category`,
  :func:`calculate_spending_trends`
- filtering: :func:`apply_filters`, :func:`calculate_active_filter_count`
- export: :func:`serialize`
"""

from .aggregation import (
    calculate_average_by_category,
    calculate_cashback_by_category,
    calculate_categories,
    calculate_net_spending_by_category,
    calculate_spending_trends,
    calculate_summary_statistics,
    calculate_time_periods,
    top_categories,
)
from .config import DateStyle, ExportConfig, IngestConfig
from .export import serialize, to_export_bytes, write_export
from .filters import (
    DateBounds,
    FilterSpec,
    apply_filters,
    calculate_active_filter_count,
    clear_filters,
    date_range_bounds,
    describe_filters,
    unique_categories,
    update_filters,
)
from .headers import CanonicalColumn
from .ingest import ingest, ingest_path
from .issues import (
    IngestError,
    IngestErrorKind,
    IngestResult,
    IngestWarning,
    IngestWarningKind,
)
from .models import (
    UNCATEGORIZED,
    CategoryTotal,
    SpendingTrend,
    SummaryStatistics,
    TimePeriod,
    Transaction,
    Transactions,
)

__all__ = [
    # Ingestion
    "ingest",
    "ingest_path",
    "IngestConfig",
    "IngestResult",
    "IngestError",
    "IngestErrorKind",
    "IngestWarning",
    "IngestWarningKind",
    "CanonicalColumn",
    # Aggregation
    "calculate_categories",
    "calculate_summary_statistics",
    "calculate_time_periods",
    "calculate_net_spending_by_category",
    "calculate_spending_trends",
    "calculate_average_by_category",
    "calculate_cashback_by_category",
    "top_categories",
    # Filtering
    "FilterSpec",
    "DateBounds",
    "apply_filters",
    "calculate_active_filter_count",
    "clear_filters",
    "update_filters",
    "describe_filters",
    "unique_categories",
    "date_range_bounds",
    # Export
    "ExportConfig",
    "DateStyle",
    "serialize",
    "to_export_bytes",
    "write_export",
    # Models
    "UNCATEGORIZED",
    "Transaction",
    "Transactions",
    "CategoryTotal",
    "SummaryStatistics",
    "TimePeriod",
    "SpendingTrend",
]
