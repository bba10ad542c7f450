"""GET /v1/balances - Who owes whom across all shared expenses"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from apargo_ledger.api.v1.schemas import ApartmentBalanceSchema, BalancesResponse
from apargo_ledger.domain.balances import calculate_unpaid_bills_count, compute_balances
from apargo_ledger.infrastructure.database.repositories import ApartmentRepository, ExpenseRepository
from apargo_ledger.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/balances", response_model=BalancesResponse)
def get_balances(db: Session = Depends(get_db)):
    """
    Recompute every apartment's balance from stored expenses.

    Returns:
        Balance, debts owed and debts receivable per apartment
    """
    expenses = ExpenseRepository(db).list_expenses()
    apartments = ApartmentRepository(db).list_apartments()

    balances = compute_balances(expenses, apartments)

    return BalancesResponse(
        balances={
            apartment_id: ApartmentBalanceSchema.model_validate(balance)
            for apartment_id, balance in balances.items()
        },
        unpaid_bills_count=calculate_unpaid_bills_count(expenses),
    )
