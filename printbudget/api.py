"""FastAPI application exposing job pricing for a 3D printing shop."""
from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import Session

from . import services
from .db import get_session, init_db
from .errors import (
    BudgetNotFound,
    ConfigurationMissing,
    FilamentNotFound,
    InvalidInput,
    PrintBudgetError,
    PrinterNotFound,
    ReferentialIntegrity,
)
from .models import (
    BudgetInput,
    BudgetRead,
    BudgetWithDetails,
    CostBreakdown,
    CostsConfigInput,
    CostsConfigRead,
    FilamentCreate,
    FilamentRead,
    FilamentUpdate,
    PrinterCreate,
    PrinterRead,
    PrinterUpdate,
)

DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173,http://127.0.0.1:3000"
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("PRINTBUDGET_CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
    if origin.strip()
]

logging.basicConfig(
    level=os.environ.get("PRINTBUDGET_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    PrinterNotFound: status.HTTP_404_NOT_FOUND,
    FilamentNotFound: status.HTTP_404_NOT_FOUND,
    BudgetNotFound: status.HTTP_404_NOT_FOUND,
    ConfigurationMissing: status.HTTP_409_CONFLICT,
    ReferentialIntegrity: status.HTTP_409_CONFLICT,
    InvalidInput: status.HTTP_400_BAD_REQUEST,
}

app = FastAPI(title="PrintBudget", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.on_event("startup")
def on_startup() -> None:
    init_db()


@app.exception_handler(PrintBudgetError)
async def domain_error_handler(request: Request, exc: PrintBudgetError) -> JSONResponse:
    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            status_code = code
            break
    logger.info("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# Printer endpoints
@app.post("/printers", response_model=PrinterRead, status_code=status.HTTP_201_CREATED)
def create_printer(payload: PrinterCreate, session: Session = Depends(get_session)):
    return services.create_printer(session, payload)


@app.get("/printers", response_model=List[PrinterRead])
def list_printers(session: Session = Depends(get_session)):
    return services.list_printers(session)


@app.get("/printers/{printer_id}", response_model=PrinterRead)
def get_printer(printer_id: int, session: Session = Depends(get_session)):
    return services.get_printer(session, printer_id)


@app.put("/printers/{printer_id}", response_model=PrinterRead)
def update_printer(printer_id: int, payload: PrinterUpdate, session: Session = Depends(get_session)):
    return services.update_printer(session, printer_id, payload)


@app.delete("/printers/{printer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_printer(printer_id: int, session: Session = Depends(get_session)):
    services.delete_printer(session, printer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Filament endpoints
@app.post("/filaments", response_model=FilamentRead, status_code=status.HTTP_201_CREATED)
def create_filament(payload: FilamentCreate, session: Session = Depends(get_session)):
    return services.create_filament(session, payload)


@app.get("/filaments", response_model=List[FilamentRead])
def list_filaments(session: Session = Depends(get_session)):
    return services.list_filaments(session)


@app.get("/filaments/{filament_id}", response_model=FilamentRead)
def get_filament(filament_id: int, session: Session = Depends(get_session)):
    return services.get_filament(session, filament_id)


@app.put("/filaments/{filament_id}", response_model=FilamentRead)
def update_filament(filament_id: int, payload: FilamentUpdate, session: Session = Depends(get_session)):
    return services.update_filament(session, filament_id, payload)


@app.delete("/filaments/{filament_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_filament(filament_id: int, session: Session = Depends(get_session)):
    services.delete_filament(session, filament_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Costs configuration endpoints
@app.get("/costs-config", response_model=Optional[CostsConfigRead])
def get_costs_config(session: Session = Depends(get_session)):
    return services.get_current_costs_config(session)


@app.put("/costs-config", response_model=CostsConfigRead)
def update_costs_config(payload: CostsConfigInput, session: Session = Depends(get_session)):
    return services.update_costs_config(session, payload)


# Budget endpoints
@app.post("/budgets/calculate", response_model=CostBreakdown)
def calculate_budget(payload: BudgetInput, session: Session = Depends(get_session)):
    return services.calculate_budget(session, payload)


@app.post("/budgets", response_model=BudgetRead, status_code=status.HTTP_201_CREATED)
def create_budget(payload: BudgetInput, session: Session = Depends(get_session)):
    return services.create_budget(session, payload)


@app.get("/budgets", response_model=List[BudgetRead])
def list_budgets(query: Optional[str] = None, session: Session = Depends(get_session)):
    return services.list_budgets(session, query)


@app.get("/budgets/{budget_id}", response_model=BudgetWithDetails)
def get_budget(budget_id: int, session: Session = Depends(get_session)):
    return services.get_budget_with_details(session, budget_id)


@app.put("/budgets/{budget_id}", response_model=BudgetRead)
def update_budget(budget_id: int, payload: BudgetInput, session: Session = Depends(get_session)):
    return services.update_budget(session, budget_id, payload)


@app.delete("/budgets/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_budget(budget_id: int, session: Session = Depends(get_session)):
    services.delete_budget(session, budget_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/health", tags=["system"])
def healthcheck() -> dict[str, str]:
    return {"status": "ok", "timestamp": datetime.utcnow().isoformat()}
