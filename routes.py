"""API Routes for expenses"""
from fastapi import APIRouter, HTTPException, Depends, Request
from typing import List, Annotated
from datetime import timezone, tzinfo
from services.expenses_service import ExpenseStore
from models.expense import DailyExpenses, Expense, ExpenseDateInput, ExpenseInput
from utils.rate_limit import current_rate_limit, limiter
import logging

router = APIRouter()
logger = logging.getLogger(__name__)

# --- Dependency Functions ---
def get_expense_store(request: Request) -> ExpenseStore:
    """Dependency to get the expense store created by the application lifespan."""
    store = getattr(request.app.state, "expense_store", None)
    if store is None:
        logger.error("Expense store not found in application state. Was the lifespan started?")
        raise HTTPException(status_code=503, detail="Expense store not available.")
    return store

def get_expenses_timezone(request: Request) -> tzinfo:
    """Time zone used to decide which day an expense belongs to."""
    return getattr(request.app.state, "expenses_timezone", timezone.utc)

ExpenseStoreDep = Annotated[ExpenseStore, Depends(get_expense_store)]
TimezoneDep = Annotated[tzinfo, Depends(get_expenses_timezone)]

# --- API Routes ---

@router.get("/health", tags=["system"])
async def healthcheck() -> dict:
    return {"status": "ok"}

@router.get("/expenses", response_model=List[Expense], summary="Get All Expenses", description="Retrieves all expense records, most recent first.")
@limiter.limit(current_rate_limit)
async def get_expenses(request: Request, store: ExpenseStoreDep) -> List[Expense]:
    expenses = store.list()
    logger.info(f"GET /expenses endpoint called. Returning {len(expenses)} expenses.")
    return expenses

@router.get("/expenses/daily", response_model=List[DailyExpenses], summary="Get Expenses By Day", description="Groups expenses by calendar day with a total per day.")
@limiter.limit(current_rate_limit)
async def get_daily_expenses(request: Request, store: ExpenseStoreDep, tz: TimezoneDep) -> List[DailyExpenses]:
    days = store.daily(tz)
    logger.info(f"GET /expenses/daily endpoint called. Returning {len(days)} days.")
    return days

@router.get("/expenses/{expense_id}", response_model=Expense, summary="Get Expense")
@limiter.limit(current_rate_limit)
async def get_expense(request: Request, expense_id: int, store: ExpenseStoreDep) -> Expense:
    expense = store.get(expense_id)
    if expense is None:
        logger.warning(f"GET /expenses/{expense_id}: not found.")
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense

@router.post("/expenses", response_model=Expense, summary="Create Expense", description="Stores a new expense stamped with the current time.")
@limiter.limit(current_rate_limit)
async def create_expense(request: Request, expense_in: ExpenseInput, store: ExpenseStoreDep) -> Expense:
    logger.info(f"POST /expenses endpoint called: {expense_in.amount} - {expense_in.description[:50]}")
    try:
        return store.create(expense_in.amount, expense_in.description)
    except ValueError as ve:
        logger.error(f"ValueError creating expense: {ve}")
        raise HTTPException(status_code=400, detail=str(ve))

@router.put("/expenses/{expense_id}", response_model=Expense, summary="Update Expense", description="Replaces amount and description, keeping the original timestamp.")
@limiter.limit(current_rate_limit)
async def update_expense(request: Request, expense_id: int, expense_in: ExpenseInput, store: ExpenseStoreDep) -> Expense:
    logger.info(f"PUT /expenses/{expense_id} endpoint called.")
    try:
        expense = store.update(expense_id, expense_in.amount, expense_in.description)
    except ValueError as ve:
        logger.error(f"ValueError updating expense {expense_id}: {ve}")
        raise HTTPException(status_code=400, detail=str(ve))
    if expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense

@router.delete("/expenses/{expense_id}", summary="Delete Expense")
@limiter.limit(current_rate_limit)
async def delete_expense(request: Request, expense_id: int, store: ExpenseStoreDep) -> dict:
    logger.info(f"DELETE /expenses/{expense_id} endpoint called.")
    try:
        deleted = store.delete(expense_id)
    except Exception as e:
        logger.exception(f"Unexpected error deleting expense {expense_id}: {e}")
        raise HTTPException(status_code=500, detail="Error deleting expense")
    if not deleted:
        raise HTTPException(status_code=404, detail="Expense not found")
    return {"success": True}

@router.put("/expenses/{expense_id}/date", response_model=Expense, summary="Update Expense Date", description="Moves an expense to another point in time.")
@limiter.limit(current_rate_limit)
async def update_expense_date(request: Request, expense_id: int, date_in: ExpenseDateInput, store: ExpenseStoreDep) -> Expense:
    logger.info(f"PUT /expenses/{expense_id}/date endpoint called with timestamp {date_in.timestamp}.")
    if date_in.timestamp is None:
        raise HTTPException(status_code=400, detail="Timestamp is required")
    try:
        expense = store.update_date(expense_id, date_in.timestamp)
    except Exception as e:
        logger.exception(f"Unexpected error updating date of expense {expense_id}: {e}")
        raise HTTPException(status_code=500, detail="Error updating expense date")
    if expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense
