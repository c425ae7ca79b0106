"""Catalogue and budget operations on top of a SQLModel session.

These functions resolve records, enforce the delete guards and hand fully
resolved inputs to :func:`printbudget.calculator.calculate`. They raise the
errors from :mod:`printbudget.errors`; translating them to HTTP responses is
left to the API layer.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlmodel import Session, col, select

from . import calculator
from .errors import BudgetNotFound, ConfigurationMissing, FilamentNotFound, PrinterNotFound, ReferentialIntegrity
from .models import (
    Budget,
    BudgetInput,
    BudgetRead,
    BudgetWithDetails,
    CostBreakdown,
    CostsConfig,
    CostsConfigInput,
    Filament,
    FilamentCreate,
    FilamentRead,
    FilamentUpdate,
    Printer,
    PrinterCreate,
    PrinterRead,
    PrinterUpdate,
)

logger = logging.getLogger(__name__)

# Used for the live breakdown of a stored budget when no configuration was saved yet.
DEFAULT_COSTS_CONFIG = CostsConfigInput(
    electricity_cost_per_kwh=0.15,
    rent_cost_per_month=1000,
    employee_cost_per_month=3000,
    maintenance_cost_per_month=500,
    waste_percentage=5,
    error_percentage=3,
)


def _apply_update(record, update_data: dict) -> None:
    for key, value in update_data.items():
        setattr(record, key, value)
    record.updated_at = datetime.utcnow()


# Printers
def create_printer(session: Session, payload: PrinterCreate) -> Printer:
    printer = Printer.model_validate(payload)
    session.add(printer)
    session.commit()
    session.refresh(printer)
    logger.info("Created printer %s (%s)", printer.id, printer.name)
    return printer


def list_printers(session: Session) -> List[Printer]:
    return session.exec(select(Printer).order_by(Printer.name, Printer.id)).all()


def get_printer(session: Session, printer_id: int) -> Printer:
    printer = session.get(Printer, printer_id)
    if not printer:
        raise PrinterNotFound(printer_id)
    return printer


def update_printer(session: Session, printer_id: int, payload: PrinterUpdate) -> Printer:
    printer = get_printer(session, printer_id)
    _apply_update(printer, payload.model_dump(exclude_unset=True))
    session.add(printer)
    session.commit()
    session.refresh(printer)
    logger.info("Updated printer %s", printer_id)
    return printer


def delete_printer(session: Session, printer_id: int) -> None:
    printer = get_printer(session, printer_id)
    in_use = session.exec(
        select(func.count()).select_from(Budget).where(Budget.printer_id == printer_id)
    ).one()
    if in_use:
        logger.warning("Refusing to delete printer %s: referenced by %s budget(s)", printer_id, in_use)
        raise ReferentialIntegrity("Cannot delete printer: it is being used in budgets")
    session.delete(printer)
    session.commit()
    logger.info("Deleted printer %s", printer_id)


# Filaments
def create_filament(session: Session, payload: FilamentCreate) -> Filament:
    filament = Filament.model_validate(payload)
    session.add(filament)
    session.commit()
    session.refresh(filament)
    logger.info("Created filament %s (%s %s)", filament.id, filament.brand, filament.name)
    return filament


def list_filaments(session: Session) -> List[Filament]:
    return session.exec(select(Filament).order_by(Filament.created_at, Filament.id)).all()


def get_filament(session: Session, filament_id: int) -> Filament:
    filament = session.get(Filament, filament_id)
    if not filament:
        raise FilamentNotFound(filament_id)
    return filament


def update_filament(session: Session, filament_id: int, payload: FilamentUpdate) -> Filament:
    filament = get_filament(session, filament_id)
    _apply_update(filament, payload.model_dump(exclude_unset=True))
    session.add(filament)
    session.commit()
    session.refresh(filament)
    logger.info("Updated filament %s", filament_id)
    return filament


def delete_filament(session: Session, filament_id: int) -> None:
    filament = get_filament(session, filament_id)
    in_use = session.exec(
        select(func.count()).select_from(Budget).where(Budget.filament_id == filament_id)
    ).one()
    if in_use:
        logger.warning("Refusing to delete filament %s: referenced by %s budget(s)", filament_id, in_use)
        raise ReferentialIntegrity("Cannot delete filament: it is being used in existing budgets")
    session.delete(filament)
    session.commit()
    logger.info("Deleted filament %s", filament_id)


# Costs configuration
def get_current_costs_config(session: Session) -> Optional[CostsConfig]:
    """Return the most recently updated configuration, or ``None`` when none was saved."""
    statement = select(CostsConfig).order_by(CostsConfig.updated_at.desc(), CostsConfig.id.desc()).limit(1)
    return session.exec(statement).first()


def update_costs_config(session: Session, payload: CostsConfigInput) -> CostsConfig:
    config = get_current_costs_config(session)
    if config is None:
        config = CostsConfig.model_validate(payload)
        logger.info("Creating costs configuration")
    else:
        _apply_update(config, payload.model_dump())
        logger.info("Replacing costs configuration %s", config.id)
    session.add(config)
    session.commit()
    session.refresh(config)
    return config


# Budgets
def _resolve_inputs(session: Session, payload: BudgetInput):
    printer = get_printer(session, payload.printer_id)
    filament = get_filament(session, payload.filament_id)
    config = get_current_costs_config(session)
    if config is None:
        raise ConfigurationMissing()
    return printer, filament, config


def calculate_budget(session: Session, payload: BudgetInput) -> CostBreakdown:
    printer, filament, config = _resolve_inputs(session, payload)
    return calculator.calculate(printer, filament, config, payload)


def _store_calculation(budget: Budget, payload: BudgetInput, breakdown: CostBreakdown) -> None:
    budget.name = payload.name
    budget.printer_id = payload.printer_id
    budget.filament_id = payload.filament_id
    budget.print_time_hours = payload.print_time_hours
    budget.material_weight_g = payload.material_weight_g
    budget.pieces_quantity = payload.pieces_quantity
    budget.total_cost = breakdown.total_cost
    budget.sale_price = breakdown.sale_price
    budget.profit_margin = breakdown.profit_margin_percentage


def create_budget(session: Session, payload: BudgetInput) -> Budget:
    breakdown = calculate_budget(session, payload)
    budget = Budget()
    _store_calculation(budget, payload, breakdown)
    session.add(budget)
    session.commit()
    session.refresh(budget)
    logger.info("Created budget %s (%s): sale price %.2f", budget.id, budget.name, budget.sale_price)
    return budget


def list_budgets(session: Session, query: Optional[str] = None) -> List[Budget]:
    statement = select(Budget)
    if query and query.strip():
        term = query.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        statement = statement.where(col(Budget.name).ilike(f"%{term}%", escape="\\"))
    statement = statement.order_by(Budget.created_at.desc(), Budget.id.desc())
    return session.exec(statement).all()


def get_budget(session: Session, budget_id: int) -> Budget:
    budget = session.get(Budget, budget_id)
    if not budget:
        raise BudgetNotFound(budget_id)
    return budget


def get_budget_with_details(session: Session, budget_id: int) -> BudgetWithDetails:
    """Return the stored budget plus a breakdown recomputed with the current configuration."""
    budget = get_budget(session, budget_id)
    printer = get_printer(session, budget.printer_id)
    filament = get_filament(session, budget.filament_id)
    config = get_current_costs_config(session) or DEFAULT_COSTS_CONFIG
    calculation = calculator.calculate(printer, filament, config, budget)
    return BudgetWithDetails(
        **BudgetRead.model_validate(budget).model_dump(),
        printer=PrinterRead.model_validate(printer),
        filament=FilamentRead.model_validate(filament),
        calculation=calculation,
    )


def update_budget(session: Session, budget_id: int, payload: BudgetInput) -> Budget:
    budget = get_budget(session, budget_id)
    breakdown = calculate_budget(session, payload)
    _store_calculation(budget, payload, breakdown)
    budget.updated_at = datetime.utcnow()
    session.add(budget)
    session.commit()
    session.refresh(budget)
    logger.info("Recalculated budget %s: sale price %.2f", budget_id, budget.sale_price)
    return budget


def delete_budget(session: Session, budget_id: int) -> None:
    budget = get_budget(session, budget_id)
    session.delete(budget)
    session.commit()
    logger.info("Deleted budget %s", budget_id)
