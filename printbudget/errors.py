"""Domain errors raised by the pricing services."""


class PrintBudgetError(Exception):
    """Base error for pricing and catalogue failures."""


class PrinterNotFound(PrintBudgetError):
    """Raised when a printer id does not resolve."""

    def __init__(self, printer_id: int):
        super().__init__(f"Printer with id {printer_id} not found")
        self.printer_id = printer_id


class FilamentNotFound(PrintBudgetError):
    """Raised when a filament id does not resolve."""

    def __init__(self, filament_id: int):
        super().__init__(f"Filament with id {filament_id} not found")
        self.filament_id = filament_id


class BudgetNotFound(PrintBudgetError):
    """Raised when a budget id does not resolve."""

    def __init__(self, budget_id: int):
        super().__init__(f"Budget with id {budget_id} not found")
        self.budget_id = budget_id


class ConfigurationMissing(PrintBudgetError):
    """Raised when a calculation is requested before any costs configuration exists."""

    def __init__(self):
        super().__init__("Costs configuration not found")


class ReferentialIntegrity(PrintBudgetError):
    """Raised when deleting a printer or filament that budgets still reference."""


class InvalidInput(PrintBudgetError):
    """Raised when job parameters fail semantic validation."""


class InvalidQuantity(InvalidInput):
    """Raised when the pieces quantity is below one."""
