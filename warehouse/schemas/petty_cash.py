import datetime as dt
from typing import Annotated, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from warehouse.schemas.common import BlankToNone, PageMeta


class PettyCashCategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class PettyCashCategoryRead(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class PettyCashIncomeCreate(BaseModel):
    date: dt.date
    amount: float = Field(allow_inf_nan=False)
    description: str = Field(min_length=1, max_length=500)


class PettyCashExpenseCreate(BaseModel):
    date: dt.date
    category_id: int = Field(validation_alias=AliasChoices("category_id", "categoryId"))
    amount: float = Field(allow_inf_nan=False)
    description: str = Field(min_length=1, max_length=500)
    receipt: Annotated[Optional[str], BlankToNone] = Field(default=None, max_length=255)

    model_config = ConfigDict(populate_by_name=True)


class PettyCashRead(BaseModel):
    id: int
    date: dt.date
    type: str
    amount: float
    description: str
    category_id: Optional[int] = None
    category: Optional[PettyCashCategoryRead] = None
    receipt: Optional[str] = None
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class PettyCashPage(BaseModel):
    data: List[PettyCashRead]
    balance: float
    meta: PageMeta


class PettyCashLedgerRow(PettyCashRead):
    running_balance: float


class ExpenseByCategory(BaseModel):
    name: str
    value: float


class ReportPeriod(BaseModel):
    date_from: dt.date
    date_to: dt.date


class PettyCashReport(BaseModel):
    opening_balance: float
    total_income: float
    total_expense: float
    closing_balance: float
    transactions: List[PettyCashLedgerRow]
    expense_by_category: List[ExpenseByCategory]
    period: ReportPeriod
