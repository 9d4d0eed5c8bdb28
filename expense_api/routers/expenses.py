from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, Request, Response, status

from expense_api.db.dal import ExpenseStore
from expense_api.models import IDEMPOTENCY_KEY_HEADER
from expense_api.models.expense import CategorySummary, ExpenseIn, ExpenseOut
from expense_api.services.expense_validation import validate_expense

router = APIRouter(prefix="/expenses", tags=["expenses"])

# Dependencies -----------------------------------------------------


def get_store(request: Request) -> ExpenseStore:
    return request.app.state.store


# Routes -----------------------------------------------------------
@router.post(
    "",
    response_model=ExpenseOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create an expense",
    responses={200: {"model": ExpenseOut, "description": "Idempotent replay"}},
)
async def create_expense(
    payload: ExpenseIn,
    response: Response,
    idempotency_key: Optional[str] = Header(None, alias=IDEMPOTENCY_KEY_HEADER),
    store: ExpenseStore = Depends(get_store),
):
    # 1. Business rules + normalization (raises ExpenseValidationError -> 400)
    expense = validate_expense(payload)

    # 2. Persist; a repeated key hands back the stored record untouched
    row, created = store.create_expense(
        expense, idempotency_key=idempotency_key or None
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return ExpenseOut(**row)


@router.get(
    "",
    response_model=List[ExpenseOut],
    summary="List expenses with optional category filter and date ordering",
)
async def list_expenses_endpoint(
    category: Optional[str] = Query(None, description="Exact, case-sensitive match"),
    sort: Optional[str] = Query(
        None, description="'date_desc' for newest first; otherwise insertion order"
    ),
    store: ExpenseStore = Depends(get_store),
):
    rows = store.list_expenses(category=category or None, sort=sort)
    return [ExpenseOut(**r) for r in rows]


@router.get(
    "/summary",
    response_model=List[CategorySummary],
    summary="Totals per category with percentage of the grand total",
)
async def summary_endpoint(store: ExpenseStore = Depends(get_store)):
    """Return per-category totals ordered by total descending.

    Percentages are rounded independently, so they may not sum to exactly 100.
    Empty list when there are no expenses.
    """
    return [CategorySummary(**item) for item in store.summarize()]
