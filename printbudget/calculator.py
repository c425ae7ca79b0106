"""Cost and price breakdown for a print job.

Every function here is pure: the costs configuration is passed in by the
caller and nothing is read from the database or from module state. The
inputs only need to expose the attributes used below, so ORM rows and plain
schemas work alike.

All quantities describe the whole job. ``material_weight_g`` and
``print_time_hours`` already cover every piece; ``pieces_quantity`` is only
used to derive the per-piece figures. No rounding is applied.
"""
from __future__ import annotations

from .errors import InvalidQuantity
from .models import CostBreakdown, JobParams

# 30 days of 24 hours, used to spread monthly overhead over print time.
MONTHLY_HOURS = 30 * 24


def material_cost(weight_g: float, cost_per_kg: float) -> float:
    return (weight_g / 1000) * cost_per_kg


def electricity_cost(print_time_hours: float, power_consumption_w: float, cost_per_kwh: float) -> float:
    return print_time_hours * (power_consumption_w / 1000) * cost_per_kwh


def fixed_costs(print_time_hours: float, costs_config) -> float:
    """Share of the monthly rent, staff and maintenance attributable to the print time."""
    monthly_total = (
        costs_config.rent_cost_per_month
        + costs_config.employee_cost_per_month
        + costs_config.maintenance_cost_per_month
    )
    return (print_time_hours / MONTHLY_HOURS) * monthly_total


def calculate(printer, filament, costs_config, job) -> CostBreakdown:
    """Return the full cost/price breakdown for ``job``.

    Profit is a markup on the total cost (``printer.profit_percentage``), while
    ``profit_margin_percentage`` reports the share of the sale price that is
    profit. A zero sale price yields a margin of exactly ``0``.
    """
    if job.pieces_quantity < 1:
        raise InvalidQuantity(f"Pieces quantity must be at least 1, got {job.pieces_quantity}")

    material = material_cost(job.material_weight_g, filament.cost_per_kg)
    electricity = electricity_cost(
        job.print_time_hours, printer.power_consumption, costs_config.electricity_cost_per_kwh
    )
    fixed = fixed_costs(job.print_time_hours, costs_config)
    waste = material * (costs_config.waste_percentage / 100)
    # Error allowance covers material and electricity only.
    error = (material + electricity) * (costs_config.error_percentage / 100)

    total_cost = material + electricity + fixed + waste + error
    profit_amount = total_cost * (printer.profit_percentage / 100)
    sale_price = total_cost + profit_amount
    profit_margin_percentage = (profit_amount / sale_price) * 100 if sale_price > 0 else 0.0

    return CostBreakdown(
        material_cost=material,
        electricity_cost=electricity,
        fixed_costs=fixed,
        waste_cost=waste,
        error_cost=error,
        total_cost=total_cost,
        profit_amount=profit_amount,
        sale_price=sale_price,
        profit_margin_percentage=profit_margin_percentage,
        cost_per_piece=total_cost / job.pieces_quantity,
        price_per_piece=sale_price / job.pieces_quantity,
    )


def job_from_per_piece(print_time_per_piece: float, weight_per_piece_g: float, pieces_quantity: int) -> JobParams:
    """Scale per-piece time and weight up to the whole-job totals ``calculate`` expects."""
    if pieces_quantity < 1:
        raise InvalidQuantity(f"Pieces quantity must be at least 1, got {pieces_quantity}")
    return JobParams(
        print_time_hours=print_time_per_piece * pieces_quantity,
        material_weight_g=weight_per_piece_g * pieces_quantity,
        pieces_quantity=pieces_quantity,
    )
