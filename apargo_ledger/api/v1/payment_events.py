"""/v1/payment-events/scheduler - Automated monthly payment event generation"""

import logging
import time
from datetime import date

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from apargo_ledger.api.dependencies import get_reporting_client, get_request_id, get_today
from apargo_ledger.api.v1.schemas import (
    CategoryResultSchema,
    ScheduledCategorySchema,
    SchedulerRequest,
    SchedulerResponse,
    SchedulerStatusResponse,
)
from apargo_ledger.domain.exceptions import ReportingWebhookError
from apargo_ledger.domain.models import SchedulerRun
from apargo_ledger.domain.scheduler import run_scheduler, scheduler_status, upcoming_generations
from apargo_ledger.infrastructure.clients.reporting import ReportingClient
from apargo_ledger.infrastructure.database.repositories import (
    CategoryRepository,
    PaymentEventWriter,
    PaymentRepository,
)
from apargo_ledger.infrastructure.database.session import get_db
from apargo_ledger.infrastructure.observability.logging import log_scheduler_run
from apargo_ledger.infrastructure.observability.metrics import record_scheduler_run
from apargo_ledger.utils.date_utils import month_year_from_date

router = APIRouter()


async def report_scheduler_run(client: ReportingClient, run: SchedulerRun, request_id: str) -> None:
    try:
        await client.send_scheduler_run(run)
    except ReportingWebhookError as e:
        logging.error(f"Reporting webhook error: {e}", extra={"request_id": request_id})


def _summary(run: SchedulerRun) -> str:
    if run.skipped_reason:
        return f"No payment events generated for {run.month_year}"
    return f"Automated generation completed: {run.events_created} payment events created for {run.month_year}"


@router.post("/payment-events/scheduler", response_model=SchedulerResponse)
def trigger_scheduler(
    request_body: SchedulerRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    reporting_client: ReportingClient = Depends(get_reporting_client),
):
    """
    Generate this month's payment events for every category due today.

    Flow:
    1. Resolve the target month (current month by default)
    2. Run the scheduler; each category is committed independently
    3. Record metrics and logs
    4. Report the run to the reporting webhook in the background
    """
    start_time = time.time()
    request_id = get_request_id(request)
    target_month = request_body.month_year or month_year_from_date(today)

    categories = CategoryRepository(db).list_categories()
    payments = PaymentRepository(db)
    writer = PaymentEventWriter(db)

    def create_events(category, month_year):
        # One transaction per category
        try:
            created = writer.generate_payment_events(category, month_year)
            db.commit()
            return created
        except Exception:
            db.rollback()
            raise

    run = run_scheduler(
        categories,
        target_month,
        today,
        find_existing=payments.find_payment_events,
        create_events=create_events,
        force=request_body.force,
    )

    duration_ms = (time.time() - start_time) * 1000
    record_scheduler_run(run)
    log_scheduler_run(request_id, run, duration_ms)

    if run.events_created and reporting_client.enabled:
        background_tasks.add_task(report_scheduler_run, reporting_client, run, request_id)

    return SchedulerResponse(
        success=True,
        message=_summary(run),
        month_year=run.month_year,
        trigger_day=run.trigger_day,
        events_created=run.events_created,
        processed_categories=len(run.results),
        results=[CategoryResultSchema.model_validate(result) for result in run.results],
        skipped_reason=run.skipped_reason,
    )


@router.get("/payment-events/scheduler", response_model=SchedulerStatusResponse)
def get_scheduler_status(db: Session = Depends(get_db), today: date = Depends(get_today)):
    """
    Report the next generation date of every auto-generated category.

    Nothing is generated.
    """
    scheduled = scheduler_status(CategoryRepository(db).list_categories(), today)

    return SchedulerStatusResponse(
        current_date=today,
        current_day=today.day,
        current_month=month_year_from_date(today),
        total_configured_categories=len(scheduled),
        scheduler_status="active" if scheduled else "inactive",
        scheduled_categories=[ScheduledCategorySchema.model_validate(s) for s in scheduled],
        upcoming_generations=[ScheduledCategorySchema.model_validate(s) for s in upcoming_generations(scheduled)],
    )
