from bizhub.schemas.employee import (
    EmployeeCreate, EmployeeUpdate, EmployeeResponse, EmployeeListResponse,
)
from bizhub.schemas.payroll import (
    PayrollEntry, PayrollRunRequest, PayrollRunResponse, PayrollRecordResponse,
)
from bizhub.schemas.recurring import (
    RecurringExpenseCreate, RecurringExpenseUpdate, RecurringExpenseResponse,
)
from bizhub.schemas.payable import (
    PayableCreate, PayableResponse, PayablePaymentRequest,
)
from bizhub.schemas.inventory import (
    InventoryAdjustment, InventoryResponse, StockTransferCreate, StockTransferResponse,
)

__all__ = [
    "EmployeeCreate", "EmployeeUpdate", "EmployeeResponse", "EmployeeListResponse",
    "PayrollEntry", "PayrollRunRequest", "PayrollRunResponse", "PayrollRecordResponse",
    "RecurringExpenseCreate", "RecurringExpenseUpdate", "RecurringExpenseResponse",
    "PayableCreate", "PayableResponse", "PayablePaymentRequest",
    "InventoryAdjustment", "InventoryResponse", "StockTransferCreate", "StockTransferResponse",
]
