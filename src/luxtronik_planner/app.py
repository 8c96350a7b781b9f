"""Main application module for the Luxtronik planner.

This module wires the configuration, the spot price and state stores and the
heat pump connection into a `PlannerService` and runs it, either:
- once, which suits a Kubernetes CronJob (the default), or
- repeatedly on the crontab schedule in the `PLANNER_SCHEDULE` environment
  variable, using a blocking APScheduler scheduler.

A failed run is logged with its traceback. In the run-once mode the process
then exits with a non-zero status; in the scheduled mode the next run simply
starts from scratch.
"""

import os
import sys

import requests
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from luxtronik_planner.exceptions import PlannerError
from luxtronik_planner.planning.orchestrator import PlannerService
from luxtronik_planner.retrievers.config import DeviceConnectionConfig, load_config
from luxtronik_planner.retrievers.spot_prices_client import SpotPricesStateClient
from luxtronik_planner.retrievers.state_client import StateClient
from luxtronik_planner.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)


def run_once() -> None:
    """Loads all settings and executes a single planner run.

    Raises:
        PlannerError: If the configuration is invalid or the heat pump run fails.
        requests.exceptions.HTTPError: If the state cannot be stored in its ConfigMap.
    """
    config = load_config()
    connection_config = DeviceConnectionConfig.from_env()

    service = PlannerService(
        config,
        connection_config,
        SpotPricesStateClient(),
        StateClient.from_env(),
    )
    service.run()


def job_finished_listener(event: JobExecutionEvent) -> None:
    """Logs the outcome of a scheduled run.

    Args:
        event: The `JobExecutionEvent` of the finished or failed run.
    """
    if event.exception is not None:
        logger.error(
            "Planner run %s failed",
            event.job_id,
            exc_info=(type(event.exception), event.exception, event.traceback),
        )
    else:
        logger.info("Planner run %s completed", event.job_id)


def create_scheduler(schedule: str) -> BlockingScheduler:
    """Creates a scheduler running the planner on a crontab schedule.

    Runs never overlap and missed runs are coalesced into one.

    Args:
        schedule: A crontab expression, e.g. "5 * * * *".
    """
    scheduler = BlockingScheduler()
    scheduler.add_listener(job_finished_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)
    scheduler.add_job(
        run_once,
        trigger=CronTrigger.from_crontab(schedule),
        id="planner",
        max_instances=1,
        coalesce=True,
    )
    return scheduler


def main() -> None:
    """Main entry point for the Luxtronik planner."""
    schedule = os.getenv("PLANNER_SCHEDULE")
    if schedule:
        logger.info("Running planner on schedule %s", schedule)
        scheduler = create_scheduler(schedule)
        try:
            scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            logger.info("Scheduler stopped")
        return

    try:
        run_once()
    except (PlannerError, requests.exceptions.RequestException):
        logger.exception("Planner run failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
