"""Payment event scheduler - recurring monthly obligations such as maintenance fees"""

from datetime import date, datetime
from typing import Callable, Iterable, List

from apargo_ledger.domain.models import (
    INCOME,
    PENDING,
    Category,
    CategoryGenerationResult,
    Payment,
    ScheduledCategory,
    SchedulerRun,
)
from apargo_ledger.utils.date_utils import next_day_of_month, parse_month_year

DEFAULT_DAY_OF_MONTH = 1
REASON_PREFIX = "Monthly maintenance fee"
ALREADY_EXISTS = "Payment events already exist for this month"

FindExisting = Callable[[str], List[Payment]]
CreateEvents = Callable[[Category, str], List[Payment]]


def select_payment_event_categories(categories: Iterable[Category]) -> List[Category]:
    """Categories configured for automatic monthly generation"""
    return [
        category
        for category in categories
        if category.is_payment_event
        and category.auto_generate
        and category.monthly_amount is not None
        and category.monthly_amount > 0
    ]


def generation_day(category: Category) -> int:
    return category.day_of_month or DEFAULT_DAY_OF_MONTH


def is_due(category: Category, current_day: int, force: bool = False) -> bool:
    return force or current_day == generation_day(category)


def payment_event_reason(category: Category) -> str:
    return f"{REASON_PREFIX} - {category.name}"


def has_existing_events(category: Category, payments: Iterable[Payment]) -> bool:
    """True when any payment's reason references the category name"""
    return any(payment.reason and category.name in payment.reason for payment in payments)


def build_payment_event(
    category: Category,
    apartment_id: str,
    resident_id: str,
    month_year: str,
    now: datetime,
    payment_id: str = "",
) -> Payment:
    """Pending income payment charging an apartment the category's monthly amount"""
    return Payment(
        id=payment_id,
        payer_id=resident_id,
        payee_id=resident_id,
        apartment_id=apartment_id,
        amount=float(category.monthly_amount or 0),
        status=PENDING,
        category=INCOME,
        month_year=month_year,
        reason=payment_event_reason(category),
        created_at=now,
    )


def run_scheduler(
    categories: Iterable[Category],
    target_month: str,
    today: date,
    find_existing: FindExisting,
    create_events: CreateEvents,
    force: bool = False,
) -> SchedulerRun:
    """
    Generate payment events for every category due today.

    Args:
        categories: All categories; non payment-event ones are ignored
        target_month: YYYY-MM month to generate for
        today: Injected clock; only its day of month is used
        find_existing: Persistence lookup of payment events in a month
        create_events: Persistence creation of a category's events for a month
        force: Ignore the configured day and the existing-events guard

    Each category is processed independently: a failure is recorded in that
    category's result and the remaining categories still run.
    """
    parse_month_year(target_month)
    run = SchedulerRun(month_year=target_month, trigger_day=today.day, force=force)

    configured = select_payment_event_categories(categories)
    if not configured:
        run.skipped_reason = "No auto-generation categories found"
        return run

    due = [category for category in configured if is_due(category, today.day, force)]
    if not due:
        configured_days = ", ".join(str(generation_day(c)) for c in configured)
        run.skipped_reason = f"Wrong day for generation. Configured days: {configured_days}"
        return run

    for category in due:
        result = CategoryGenerationResult(category_id=category.id, category_name=category.name)
        try:
            if not force and has_existing_events(category, find_existing(target_month)):
                result.skipped = True
                result.error = ALREADY_EXISTS
            else:
                result.events_created = len(create_events(category, target_month))
        except Exception as e:
            result.events_created = 0
            result.error = str(e) or type(e).__name__

        run.events_created += result.events_created
        run.results.append(result)

    return run


def scheduler_status(categories: Iterable[Category], today: date) -> List[ScheduledCategory]:
    """Next generation date of every auto-generated category, without generating"""
    scheduled = []
    for category in select_payment_event_categories(categories):
        day = generation_day(category)
        scheduled.append(
            ScheduledCategory(
                category_id=category.id,
                category_name=category.name,
                monthly_amount=float(category.monthly_amount),
                day_of_month=day,
                next_generation_date=next_day_of_month(today, day),
                is_scheduled_today=today.day == day,
            )
        )
    return scheduled


def upcoming_generations(scheduled: List[ScheduledCategory], limit: int = 5) -> List[ScheduledCategory]:
    """Soonest generations that are not happening today"""
    pending = [s for s in scheduled if not s.is_scheduled_today]
    return sorted(pending, key=lambda s: s.next_generation_date)[:limit]
