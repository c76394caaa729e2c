"""Service layer holding the in-memory expense store."""
import logging
import threading
from datetime import datetime, timezone, tzinfo
from decimal import Decimal
from typing import Any, Dict, List, Optional

from models.expense import DailyExpenses, Expense, clean_description, parse_amount
from utils.dates import local_day, to_utc, utc_now

logger = logging.getLogger(__name__)


class ExpenseStore:
    """
    In-memory keyed collection of expenses owned by one application instance.

    Ids start at 1 and are never reused, even after a delete. Each operation holds the
    store lock for its whole duration, so callers never observe a half-applied change.
    Stored Expense objects are frozen and replaced on every mutation.
    """

    def __init__(self) -> None:
        self._expenses: Dict[int, Expense] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._expenses)

    def create(self, amount: Any, description: Any) -> Expense:
        """Validates and stores a new expense stamped with the current time."""
        parsed_amount = parse_amount(amount)
        parsed_description = clean_description(description)
        with self._lock:
            expense = Expense(
                id=self._next_id,
                amount=parsed_amount,
                description=parsed_description,
                timestamp=utc_now(),
            )
            self._expenses[expense.id] = expense
            self._next_id += 1
        logger.info(f"Created expense {expense.id}: {expense.amount} - {expense.description[:30]}")
        return expense

    def list(self) -> List[Expense]:
        """Snapshot of all expenses, most recent first."""
        with self._lock:
            expenses = list(self._expenses.values())
        expenses.sort(key=lambda e: (e.timestamp, e.id), reverse=True)
        return expenses

    def get(self, expense_id: int) -> Optional[Expense]:
        with self._lock:
            return self._expenses.get(expense_id)

    def update(self, expense_id: int, amount: Any, description: Any) -> Optional[Expense]:
        """Replaces amount and description, keeping id and timestamp. None if the id is unknown."""
        parsed_amount = parse_amount(amount)
        parsed_description = clean_description(description)
        with self._lock:
            existing = self._expenses.get(expense_id)
            if existing is None:
                logger.warning(f"Update skipped: expense {expense_id} not found.")
                return None
            updated = existing.model_copy(update={"amount": parsed_amount, "description": parsed_description})
            self._expenses[expense_id] = updated
        logger.info(f"Updated expense {expense_id}.")
        return updated

    def delete(self, expense_id: int) -> bool:
        with self._lock:
            removed = self._expenses.pop(expense_id, None)
        if removed is None:
            logger.warning(f"Delete skipped: expense {expense_id} not found.")
            return False
        logger.info(f"Deleted expense {expense_id}.")
        return True

    def update_date(self, expense_id: int, timestamp: datetime) -> Optional[Expense]:
        """Moves an expense to another point in time without touching amount or description."""
        if timestamp is None:
            raise ValueError("Timestamp is required")
        new_timestamp = to_utc(timestamp)
        with self._lock:
            existing = self._expenses.get(expense_id)
            if existing is None:
                logger.warning(f"Date update skipped: expense {expense_id} not found.")
                return None
            updated = existing.model_copy(update={"timestamp": new_timestamp})
            self._expenses[expense_id] = updated
        logger.info(f"Moved expense {expense_id} to {new_timestamp.isoformat()}.")
        return updated

    def daily(self, tz: tzinfo = timezone.utc) -> List[DailyExpenses]:
        """Groups expenses by calendar day in `tz`, most recent day first."""
        groups: Dict[Any, List[Expense]] = {}
        # list() is already newest first, so days and their entries come out in order
        for expense in self.list():
            groups.setdefault(local_day(expense.timestamp, tz), []).append(expense)
        return [
            DailyExpenses(
                date=day,
                total=sum((e.amount for e in expenses), Decimal("0.00")),
                expenses=expenses,
            )
            for day, expenses in groups.items()
        ]
