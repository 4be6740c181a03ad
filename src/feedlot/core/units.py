"""Unit conversion and display formatting using pint.

All internal data is stored in metric units:
- Mass: kilograms (kg)
- Growth rate: kilograms per day (kg/day)
- Money: the single farm currency (settings.currency)

Display units are controlled by settings.display_units:
- "metric": Display as stored (kg)
- "imperial": Convert to pounds (lb)
"""

import pint

from feedlot.core.config import settings

# Create a unit registry (lazily initialized)
_ureg: pint.UnitRegistry | None = None


def get_ureg() -> pint.UnitRegistry:
    """Get the pint unit registry (lazily initialized)."""
    global _ureg
    if _ureg is None:
        _ureg = pint.UnitRegistry()
    return _ureg


# =============================================================================
# Weight Conversions
# =============================================================================


def kg_to_lb(kg: float) -> float:
    """Convert kilograms to pounds."""
    ureg = get_ureg()
    return (kg * ureg.kilogram).to(ureg.pound).magnitude


def weight_kg_to_display(kg: float) -> tuple[float, str]:
    """Convert kilograms to display units.

    Returns:
        Tuple of (value, unit_symbol) in display units
    """
    if settings.display_units == "imperial":
        return (kg_to_lb(kg), "lb")
    return (kg, "kg")


def format_weight(kg: float | None, decimals: int = 1) -> str:
    """Format a weight for display, e.g. "412.5 kg" or "909.4 lb"."""
    if kg is None:
        return "-"
    value, unit = weight_kg_to_display(kg)
    return f"{value:,.{decimals}f} {unit}"


def format_rate(kg_per_day: float | None, decimals: int = 3) -> str:
    """Format a growth rate (GCAA) for display, e.g. "1.250 kg/day"."""
    if kg_per_day is None:
        return "-"
    value, unit = weight_kg_to_display(kg_per_day)
    return f"{value:.{decimals}f} {unit}/day"


# =============================================================================
# Money
# =============================================================================


def format_money(amount: float | None, decimals: int = 0) -> str:
    """Format an amount in the farm currency, e.g. "12,500 TRY"."""
    if amount is None:
        return "-"
    return f"{amount:,.{decimals}f} {settings.currency}"


def get_weight_unit() -> str:
    """Get the weight unit symbol for current display settings."""
    return "lb" if settings.display_units == "imperial" else "kg"


def is_imperial() -> bool:
    """Check if display units are imperial."""
    return settings.display_units == "imperial"
