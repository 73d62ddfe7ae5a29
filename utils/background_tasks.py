"""
Background task dispatch and scheduling
Fire-and-forget side effects (activity logging) run on a bounded worker pool
so their failures can never reach the request that spawned them. A scheduler
thread runs periodic activity-log retention cleanup.
"""

import atexit
import logging
import schedule
import time
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from flask import current_app

logger = logging.getLogger(__name__)

INLINE_MODE = 'inline'
THREAD_MODE = 'thread'


class BackgroundTaskDispatcher:
    """Runs callables outside the request's error boundary"""

    def __init__(self, app=None):
        self.app = None
        self.mode = THREAD_MODE
        self._executor: Optional[ThreadPoolExecutor] = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.app = app
        self.mode = app.config.get('BACKGROUND_TASK_MODE', THREAD_MODE)
        if self.mode == THREAD_MODE:
            self._executor = ThreadPoolExecutor(
                max_workers=app.config.get('BACKGROUND_MAX_WORKERS', 4),
                thread_name_prefix='background-task'
            )
            atexit.register(self.shutdown)
        app.extensions['background_dispatcher'] = self
        logger.debug(f"Background dispatcher initialised in {self.mode} mode")

    def submit(self, func: Callable, *args, **kwargs) -> None:
        """Schedule func and return immediately; errors are logged, never raised"""
        if self.mode == INLINE_MODE or self._executor is None:
            self._run_safely(func, *args, **kwargs)
            return

        try:
            self._executor.submit(self._run_in_app_context, func, *args, **kwargs)
        except RuntimeError as e:
            # Executor already shut down (interpreter exit)
            logger.error(f"Could not dispatch background task {func.__name__}: {str(e)}")

    def _run_in_app_context(self, func: Callable, *args, **kwargs):
        with self.app.app_context():
            self._run_safely(func, *args, **kwargs)

    @staticmethod
    def _run_safely(func: Callable, *args, **kwargs):
        try:
            func(*args, **kwargs)
        except Exception as e:
            logger.error(f"Background task {func.__name__} failed: {str(e)}", exc_info=True)

    def shutdown(self, wait: bool = True):
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None


def dispatch(func: Callable, *args, **kwargs) -> None:
    """Fire-and-forget func on the current app's dispatcher"""
    dispatcher = current_app.extensions.get('background_dispatcher')
    if dispatcher is None:
        BackgroundTaskDispatcher._run_safely(func, *args, **kwargs)
        return
    dispatcher.submit(func, *args, **kwargs)


class BackgroundTaskScheduler:
    """Manages periodic maintenance tasks"""

    def __init__(self, app=None):
        self.app = app
        self.running = False
        self.scheduler_thread = None
        self._scheduler = schedule.Scheduler()

    def start_scheduler(self):
        """Start the background task scheduler"""
        if self.running:
            logger.warning("Scheduler already running")
            return

        logger.info("Starting background task scheduler")

        # Activity log retention cleanup daily at 2 AM
        self._scheduler.every().day.at("02:00").do(self._safe_run_cleanup)

        self.running = True
        self.scheduler_thread = threading.Thread(target=self._run_scheduler, daemon=True)
        self.scheduler_thread.start()

        logger.info("Background task scheduler started successfully")

    def stop_scheduler(self):
        """Stop the background task scheduler"""
        if not self.running:
            return

        logger.info("Stopping background task scheduler")
        self.running = False
        self._scheduler.clear()

        if self.scheduler_thread:
            self.scheduler_thread.join(timeout=30)

        logger.info("Background task scheduler stopped")

    def _run_scheduler(self):
        """Main scheduler loop"""
        while self.running:
            try:
                self._scheduler.run_pending()
                time.sleep(60)  # Check every minute
            except Exception as e:
                logger.error(f"Error in scheduler loop: {str(e)}")
                time.sleep(300)

    def _safe_run_cleanup(self):
        """Run activity-log retention cleanup inside an app context"""
        from services.activity_service import ActivityService

        try:
            with self.app.app_context():
                days = self.app.config.get('ACTIVITY_RETENTION_DAYS', 180)
                logger.info(f"Starting scheduled activity log cleanup (keeping {days} days)")
                deleted = ActivityService.cleanup_old_logs(days)
                logger.info(f"Activity log cleanup completed: {deleted} records removed")
        except Exception as e:
            logger.error(f"Activity log cleanup failed: {str(e)}")


def init_background_tasks(app):
    """Initialise the dispatcher and, if enabled, the maintenance scheduler"""
    dispatcher = BackgroundTaskDispatcher(app)

    if app.config.get('ENABLE_SCHEDULER'):
        scheduler = BackgroundTaskScheduler(app)
        try:
            scheduler.start_scheduler()
            app.extensions['background_scheduler'] = scheduler
        except Exception as e:
            logger.error(f"Failed to initialize background scheduler: {str(e)}")

    return dispatcher
