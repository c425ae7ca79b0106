"""SQLModel models for the PrintBudget domain."""
from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict
from sqlmodel import Field, Relationship, SQLModel

# Money, power and time inputs must be finite; JSON such as 1e999 parses to inf.
FINITE_NUMBERS = ConfigDict(allow_inf_nan=False)


class PrinterBase(SQLModel):
    model_config = FINITE_NUMBERS

    name: str = Field(min_length=1)
    power_consumption: float = Field(gt=0, description="Power drawn while printing, in watts")
    print_speed: float = Field(gt=0, description="Nominal print speed (mm/s)")
    profit_percentage: float = Field(ge=0, description="Markup applied on top of the total cost")


class Printer(PrinterBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    budgets: List["Budget"] = Relationship(back_populates="printer")


class PrinterCreate(PrinterBase):
    pass


class PrinterUpdate(SQLModel):
    model_config = FINITE_NUMBERS

    name: Optional[str] = Field(default=None, min_length=1)
    power_consumption: Optional[float] = Field(default=None, gt=0)
    print_speed: Optional[float] = Field(default=None, gt=0)
    profit_percentage: Optional[float] = Field(default=None, ge=0)


class PrinterRead(PrinterBase):
    id: int
    created_at: datetime
    updated_at: datetime


class FilamentBase(SQLModel):
    model_config = FINITE_NUMBERS

    name: str = Field(min_length=1)
    brand: str = Field(min_length=1)
    material_type: str = Field(min_length=1, description="PLA, ABS, PETG, etc.")
    color: str = Field(min_length=1)
    cost_per_kg: float = Field(gt=0)
    density: float = Field(gt=0, description="g/cm3, informational only")


class Filament(FilamentBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    budgets: List["Budget"] = Relationship(back_populates="filament")


class FilamentCreate(FilamentBase):
    pass


class FilamentUpdate(SQLModel):
    model_config = FINITE_NUMBERS

    name: Optional[str] = Field(default=None, min_length=1)
    brand: Optional[str] = Field(default=None, min_length=1)
    material_type: Optional[str] = Field(default=None, min_length=1)
    color: Optional[str] = Field(default=None, min_length=1)
    cost_per_kg: Optional[float] = Field(default=None, gt=0)
    density: Optional[float] = Field(default=None, gt=0)


class FilamentRead(FilamentBase):
    id: int
    created_at: datetime
    updated_at: datetime


class CostsConfigBase(SQLModel):
    model_config = FINITE_NUMBERS

    electricity_cost_per_kwh: float = Field(ge=0)
    rent_cost_per_month: float = Field(ge=0)
    employee_cost_per_month: float = Field(ge=0)
    maintenance_cost_per_month: float = Field(ge=0)
    waste_percentage: float = Field(ge=0, le=100, description="Share of material lost to purges and supports")
    error_percentage: float = Field(ge=0, le=100, description="Allowance for failed prints")


class CostsConfig(CostsConfigBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class CostsConfigInput(CostsConfigBase):
    pass


class CostsConfigRead(CostsConfigBase):
    id: int
    created_at: datetime
    updated_at: datetime


class JobParams(SQLModel):
    """Whole-job quantities: time and weight cover every piece combined."""

    model_config = FINITE_NUMBERS

    print_time_hours: float = Field(gt=0)
    material_weight_g: float = Field(gt=0)
    pieces_quantity: int = Field(ge=1)


class BudgetInput(JobParams):
    name: str = Field(min_length=1)
    printer_id: int = Field(gt=0)
    filament_id: int = Field(gt=0)


class Budget(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    printer_id: int = Field(foreign_key="printer.id", index=True)
    filament_id: int = Field(foreign_key="filament.id", index=True)
    print_time_hours: float
    material_weight_g: float
    pieces_quantity: int
    total_cost: float
    sale_price: float
    profit_margin: float = Field(description="Margin on sale price, in percent")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    printer: Optional[Printer] = Relationship(back_populates="budgets")
    filament: Optional[Filament] = Relationship(back_populates="budgets")


class BudgetRead(SQLModel):
    id: int
    name: str
    printer_id: int
    filament_id: int
    print_time_hours: float
    material_weight_g: float
    pieces_quantity: int
    total_cost: float
    sale_price: float
    profit_margin: float
    created_at: datetime
    updated_at: datetime


class CostBreakdown(SQLModel):
    material_cost: float
    electricity_cost: float
    fixed_costs: float
    waste_cost: float
    error_cost: float
    total_cost: float
    profit_amount: float
    sale_price: float
    profit_margin_percentage: float
    cost_per_piece: float
    price_per_piece: float


class BudgetWithDetails(BudgetRead):
    printer: PrinterRead
    filament: FilamentRead
    calculation: CostBreakdown
