from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from expense_tracker.core.errors import outcome_error_response
from expense_tracker.models.expense import Expense, ExpenseListOut, ExpenseStats, Page
from expense_tracker.services.expense_service import ExpenseService
from expense_tracker.services.outcomes import Ok

router = APIRouter(prefix="/expenses", tags=["expenses"])

# Dependencies -----------------------------------------------------


def get_expense_service(request: Request) -> ExpenseService:
    return request.app.state.expense_service


# Routes -----------------------------------------------------------
# Static paths (/stats, /search) are registered before /{expense_id}.
@router.post(
    "", response_model=Expense, status_code=201, summary="Create an expense"
)
async def create_expense(
    payload: Dict[str, Any] = Body(...),
    service: ExpenseService = Depends(get_expense_service),
):
    outcome = service.create(payload)
    if not isinstance(outcome, Ok):
        return outcome_error_response(outcome)
    return outcome.value


@router.get(
    "",
    response_model=ExpenseListOut,
    summary="List expenses with optional filters and pagination",
)
async def list_expenses_endpoint(
    limit: Optional[str] = Query(
        None, description="Page size (1-100); enables pagination"
    ),
    offset: Optional[str] = Query(
        None, description="Rows to skip (>= 0); enables pagination"
    ),
    from_date: Optional[str] = Query(
        None, alias="fromDate", description="Filter: ISO timestamp, inclusive"
    ),
    to_date: Optional[str] = Query(
        None, alias="toDate", description="Filter: ISO timestamp, inclusive"
    ),
    category: Optional[str] = Query(None, description="Filter by exact category"),
    service: ExpenseService = Depends(get_expense_service),
):
    outcome = service.list_expenses(
        {
            "limit": limit,
            "offset": offset,
            "fromDate": from_date,
            "toDate": to_date,
            "category": category,
        }
    )
    if not isinstance(outcome, Ok):
        return outcome_error_response(outcome)
    if isinstance(outcome.value, Page):
        return ExpenseListOut.from_page(outcome.value)
    return ExpenseListOut.from_items(outcome.value)


@router.get("/stats", response_model=ExpenseStats, summary="Expense statistics")
async def expense_stats(service: ExpenseService = Depends(get_expense_service)):
    outcome = service.stats()
    if not isinstance(outcome, Ok):
        return outcome_error_response(outcome)
    return outcome.value


@router.get(
    "/search",
    response_model=ExpenseListOut,
    summary="Search by category or by date range",
)
async def search_expenses(
    category: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    service: ExpenseService = Depends(get_expense_service),
):
    outcome = service.search(category=category, start_date=start_date, end_date=end_date)
    if not isinstance(outcome, Ok):
        return outcome_error_response(outcome)
    return ExpenseListOut.from_items(outcome.value)


@router.get("/{expense_id}", response_model=Expense, summary="Get an expense")
async def get_expense(
    expense_id: str,
    service: ExpenseService = Depends(get_expense_service),
):
    outcome = service.get_by_id(expense_id)
    if not isinstance(outcome, Ok):
        return outcome_error_response(outcome)
    return outcome.value


@router.put("/{expense_id}", response_model=Expense, summary="Update an expense")
@router.patch(
    "/{expense_id}", response_model=Expense, summary="Edit an expense (partial)"
)
async def update_expense(
    expense_id: str,
    payload: Dict[str, Any] = Body(...),
    service: ExpenseService = Depends(get_expense_service),
):
    outcome = service.update(expense_id, payload)
    if not isinstance(outcome, Ok):
        return outcome_error_response(outcome)
    return outcome.value


@router.delete("/{expense_id}", status_code=204, summary="Delete an expense")
async def delete_expense(
    expense_id: str,
    service: ExpenseService = Depends(get_expense_service),
):
    outcome = service.delete(expense_id)
    if not isinstance(outcome, Ok):
        return outcome_error_response(outcome)
    return None
