import pytest
from pydantic import ValidationError

from printbudget import services
from printbudget.calculator import calculate
from printbudget.errors import (
    BudgetNotFound,
    ConfigurationMissing,
    FilamentNotFound,
    PrinterNotFound,
    ReferentialIntegrity,
)
from printbudget.models import BudgetInput, CostsConfigInput, FilamentUpdate, PrinterUpdate


def test_printers_are_listed_by_name(session, printer_payload):
    services.create_printer(session, printer_payload)
    services.create_printer(session, printer_payload.model_copy(update={"name": "Ender 3"}))

    names = [printer.name for printer in services.list_printers(session)]

    assert names == ["Ender 3", "Prusa MK4"]


def test_update_printer_keeps_unset_fields(session, printer):
    created_at = printer.created_at
    updated = services.update_printer(session, printer.id, PrinterUpdate(profit_percentage=35))

    assert updated.profit_percentage == 35
    assert updated.name == "Prusa MK4"
    assert updated.power_consumption == 100
    assert updated.created_at == created_at
    assert updated.updated_at >= created_at


def test_missing_printer_raises(session):
    with pytest.raises(PrinterNotFound):
        services.get_printer(session, 999)
    with pytest.raises(PrinterNotFound):
        services.update_printer(session, 999, PrinterUpdate(name="Ghost"))
    with pytest.raises(PrinterNotFound):
        services.delete_printer(session, 999)


def test_update_filament_keeps_unset_fields(session, filament):
    updated = services.update_filament(session, filament.id, FilamentUpdate(color="Red"))

    assert updated.color == "Red"
    assert updated.cost_per_kg == 25
    assert updated.brand == "Bambu"


def test_filaments_are_listed_in_creation_order(session, filament_payload):
    first = services.create_filament(session, filament_payload.model_copy(update={"name": "Zebra PETG"}))
    second = services.create_filament(session, filament_payload.model_copy(update={"name": "Alpha ABS"}))

    assert [f.id for f in services.list_filaments(session)] == [first.id, second.id]


def test_delete_unused_printer_and_filament(session, printer, filament):
    services.delete_printer(session, printer.id)
    services.delete_filament(session, filament.id)

    assert services.list_printers(session) == []
    with pytest.raises(FilamentNotFound):
        services.get_filament(session, filament.id)


def test_referenced_printer_and_filament_cannot_be_deleted(session, costs_config, budget_payload):
    services.create_budget(session, budget_payload)

    with pytest.raises(ReferentialIntegrity):
        services.delete_printer(session, budget_payload.printer_id)
    with pytest.raises(ReferentialIntegrity):
        services.delete_filament(session, budget_payload.filament_id)

    assert services.get_printer(session, budget_payload.printer_id)
    assert services.get_filament(session, budget_payload.filament_id)


def test_costs_config_is_absent_until_saved(session):
    assert services.get_current_costs_config(session) is None


def test_costs_config_upsert_replaces_single_row(session, costs_config, config_payload):
    first_id = costs_config.id
    first_updated = costs_config.updated_at

    replaced = services.update_costs_config(
        session, config_payload.model_copy(update={"rent_cost_per_month": 1500})
    )

    assert replaced.id == first_id
    assert replaced.rent_cost_per_month == 1500
    assert replaced.updated_at >= first_updated
    assert services.get_current_costs_config(session).rent_cost_per_month == 1500


def test_calculate_requires_configuration(session, budget_payload):
    with pytest.raises(ConfigurationMissing):
        services.calculate_budget(session, budget_payload)
    with pytest.raises(ConfigurationMissing):
        services.create_budget(session, budget_payload)


def test_calculate_reports_missing_printer_first(session, budget_payload):
    payload = budget_payload.model_copy(update={"printer_id": 999, "filament_id": 998})
    with pytest.raises(PrinterNotFound):
        services.calculate_budget(session, payload)


def test_calculate_reports_missing_filament(session, budget_payload, costs_config):
    payload = budget_payload.model_copy(update={"filament_id": 998})
    with pytest.raises(FilamentNotFound):
        services.calculate_budget(session, payload)


def test_create_budget_stores_calculation_snapshot(session, costs_config, budget_payload, printer, filament):
    expected = calculate(printer, filament, costs_config, budget_payload)

    budget = services.create_budget(session, budget_payload)

    assert budget.id is not None
    assert budget.name == "Bracket set"
    assert budget.pieces_quantity == 1
    assert budget.total_cost == expected.total_cost
    assert budget.sale_price == expected.sale_price
    assert budget.profit_margin == expected.profit_margin_percentage


def test_quantities_are_not_scaled_by_pieces(session, costs_config, budget_payload):
    single = services.create_budget(session, budget_payload)
    batch = services.create_budget(session, budget_payload.model_copy(update={"pieces_quantity": 5}))

    assert batch.total_cost == single.total_cost
    assert batch.sale_price == single.sale_price


def test_list_budgets_newest_first_and_search(session, costs_config, budget_payload):
    first = services.create_budget(session, budget_payload)
    second = services.create_budget(session, budget_payload.model_copy(update={"name": "Drone frame"}))

    assert [b.id for b in services.list_budgets(session)] == [second.id, first.id]
    assert [b.id for b in services.list_budgets(session, "drone")] == [second.id]
    assert [b.id for b in services.list_budgets(session, "  BRACKET ")] == [first.id]
    assert len(services.list_budgets(session, "")) == 2


def test_budget_details_recompute_with_current_config(session, costs_config, config_payload, budget_payload):
    budget = services.create_budget(session, budget_payload)
    services.update_costs_config(session, config_payload.model_copy(update={"rent_cost_per_month": 4000}))

    details = services.get_budget_with_details(session, budget.id)

    assert details.total_cost == budget.total_cost
    assert details.printer.id == budget.printer_id
    assert details.filament.id == budget.filament_id
    assert details.calculation.total_cost > budget.total_cost
    assert details.calculation.fixed_costs == pytest.approx((2 / 720) * (4000 + 2000 + 300))


def test_budget_details_fall_back_to_default_config(session, costs_config, budget_payload):
    budget = services.create_budget(session, budget_payload)
    session.delete(costs_config)
    session.commit()

    details = services.get_budget_with_details(session, budget.id)

    assert details.calculation.fixed_costs == pytest.approx((2 / 720) * (1000 + 3000 + 500))
    assert details.calculation.waste_cost == pytest.approx(1.25 * 0.05)


def test_update_budget_recomputes_everything(session, costs_config, budget_payload, printer_payload):
    budget = services.create_budget(session, budget_payload)
    faster = services.create_printer(
        session, printer_payload.model_copy(update={"name": "Voron", "profit_percentage": 50})
    )
    payload = budget_payload.model_copy(
        update={"name": "Bracket set v2", "printer_id": faster.id, "material_weight_g": 120, "pieces_quantity": 3}
    )

    updated = services.update_budget(session, budget.id, payload)
    expected = services.calculate_budget(session, payload)

    assert updated.id == budget.id
    assert updated.name == "Bracket set v2"
    assert updated.printer_id == faster.id
    assert updated.material_weight_g == 120
    assert updated.pieces_quantity == 3
    assert updated.total_cost == expected.total_cost
    assert updated.sale_price == expected.sale_price
    assert updated.profit_margin == expected.profit_margin_percentage


def test_update_missing_budget(session, costs_config, budget_payload):
    with pytest.raises(BudgetNotFound):
        services.update_budget(session, 404, budget_payload)


def test_delete_budget_releases_references(session, costs_config, budget_payload):
    budget = services.create_budget(session, budget_payload)

    services.delete_budget(session, budget.id)

    with pytest.raises(BudgetNotFound):
        services.get_budget(session, budget.id)
    with pytest.raises(BudgetNotFound):
        services.delete_budget(session, budget.id)
    services.delete_printer(session, budget_payload.printer_id)


def test_budget_input_rejects_non_positive_values(budget_payload):
    data = budget_payload.model_dump()
    for field, value in [("print_time_hours", 0), ("material_weight_g", -1), ("pieces_quantity", 0)]:
        with pytest.raises(ValidationError):
            BudgetInput(**{**data, field: value})


def test_costs_config_percentages_are_bounded(config_payload):
    with pytest.raises(ValidationError):
        CostsConfigInput(**{**config_payload.model_dump(), "waste_percentage": 101})


@pytest.mark.parametrize("value", [float("inf"), float("nan")])
def test_non_finite_numbers_are_rejected(config_payload, budget_payload, value):
    with pytest.raises(ValidationError):
        CostsConfigInput(**{**config_payload.model_dump(), "rent_cost_per_month": value})
    with pytest.raises(ValidationError):
        BudgetInput(**{**budget_payload.model_dump(), "material_weight_g": value})
    with pytest.raises(ValidationError):
        PrinterUpdate(power_consumption=value)
    with pytest.raises(ValidationError):
        FilamentUpdate(cost_per_kg=value)


def test_search_treats_wildcards_literally(session, costs_config, budget_payload):
    services.create_budget(session, budget_payload)
    infill = services.create_budget(session, budget_payload.model_copy(update={"name": "Vase 50% infill"}))

    assert [b.id for b in services.list_budgets(session, "50%")] == [infill.id]
    assert [b.id for b in services.list_budgets(session, "%")] == [infill.id]
    assert services.list_budgets(session, "_") == []
