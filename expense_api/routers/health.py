from fastapi import APIRouter, Depends

from expense_api.db.dal import ExpenseStore
from expense_api.routers.expenses import get_store

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness check including database access")
async def health(store: ExpenseStore = Depends(get_store)):
    return {"status": "ok", "expenses": store.count_expenses()}
