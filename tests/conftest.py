import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from printbudget import services
from printbudget.api import app
from printbudget.db import get_session, init_db
from printbudget.models import BudgetInput, CostsConfigInput, FilamentCreate, PrinterCreate


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def printer_payload():
    return PrinterCreate(name="Prusa MK4", power_consumption=100, print_speed=50, profit_percentage=20)


@pytest.fixture
def filament_payload():
    return FilamentCreate(
        name="PLA Basic",
        brand="Bambu",
        material_type="PLA",
        color="Black",
        cost_per_kg=25,
        density=1.24,
    )


@pytest.fixture
def config_payload():
    return CostsConfigInput(
        electricity_cost_per_kwh=0.15,
        rent_cost_per_month=1000,
        employee_cost_per_month=2000,
        maintenance_cost_per_month=300,
        waste_percentage=5,
        error_percentage=2,
    )


@pytest.fixture
def printer(session, printer_payload):
    return services.create_printer(session, printer_payload)


@pytest.fixture
def filament(session, filament_payload):
    return services.create_filament(session, filament_payload)


@pytest.fixture
def costs_config(session, config_payload):
    return services.update_costs_config(session, config_payload)


@pytest.fixture
def budget_payload(printer, filament):
    return BudgetInput(
        name="Bracket set",
        printer_id=printer.id,
        filament_id=filament.id,
        print_time_hours=2,
        material_weight_g=50,
        pieces_quantity=1,
    )
