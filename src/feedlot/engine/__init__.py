"""Cost and growth accounting engine.

Every function here is a pure computation over a FarmSnapshot, except the
stock write-back helpers in engine.stock, which go through a RecordStore.
"""

from feedlot.engine.census import ANY_GROUP, Census, active_animals, census, is_active_on
from feedlot.engine.costs import (
    UNGROUPED,
    CostBreakdown,
    GroupCostSummary,
    allocate_costs,
    farm_cost_totals,
    feed_cost,
    group_costs,
    overhead_shares,
)
from feedlot.engine.growth import (
    GrowthMetric,
    IntervalGain,
    calculate_farm_growth,
    calculate_growth,
    interval_gains,
    lifetime_rate,
)
from feedlot.engine.projection import (
    MIN_GCAA,
    GcaaSource,
    OverheadMode,
    Projection,
    ProjectionSettings,
    ProjectionSummary,
    TargetMode,
    Valuation,
    daily_overhead_per_animal,
    project,
    project_farm,
    summarize_projections,
)
from feedlot.engine.rations import daily_consumption, daily_ration_cost, group_daily_costs
from feedlot.engine.reports import (
    AnimalProfile,
    VeterinaryDay,
    VeterinaryReport,
    WeightTracking,
    animal_profile,
    daily_veterinary_report,
    feed_stock_report,
    find_animal,
    inventory_report,
    veterinary_report,
    weighing_day_report,
    weight_tracking,
)
from feedlot.engine.stock import (
    PartialStockWriteError,
    StockChange,
    StockRecalculation,
    StockWriteReport,
    apply_stock_recalculation,
    calculate_consumption,
    recalculate_and_persist,
    recalculate_stock,
)

__all__ = [
    # census
    "ANY_GROUP",
    "Census",
    "census",
    "active_animals",
    "is_active_on",
    # rations
    "daily_ration_cost",
    "daily_consumption",
    "group_daily_costs",
    # growth
    "GrowthMetric",
    "IntervalGain",
    "interval_gains",
    "lifetime_rate",
    "calculate_growth",
    "calculate_farm_growth",
    # costs
    "UNGROUPED",
    "CostBreakdown",
    "GroupCostSummary",
    "allocate_costs",
    "feed_cost",
    "overhead_shares",
    "group_costs",
    "farm_cost_totals",
    # stock
    "StockChange",
    "StockRecalculation",
    "StockWriteReport",
    "PartialStockWriteError",
    "calculate_consumption",
    "recalculate_stock",
    "apply_stock_recalculation",
    "recalculate_and_persist",
    # projection
    "MIN_GCAA",
    "TargetMode",
    "GcaaSource",
    "Valuation",
    "OverheadMode",
    "ProjectionSettings",
    "Projection",
    "ProjectionSummary",
    "project",
    "project_farm",
    "daily_overhead_per_animal",
    "summarize_projections",
    # reports
    "inventory_report",
    "weighing_day_report",
    "feed_stock_report",
    "VeterinaryDay",
    "VeterinaryReport",
    "veterinary_report",
    "daily_veterinary_report",
    "WeightTracking",
    "weight_tracking",
    "AnimalProfile",
    "find_animal",
    "animal_profile",
]
