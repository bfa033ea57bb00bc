# cellar/utils/async_utils.py
import sys
import traceback
from concurrent.futures import Future
from typing import Any, Callable

from PyQt6.QtCore import QObject, QRunnable, QThreadPool, pyqtSignal

from cellar.utils.logger_utils import logger


class WorkerSignals(QObject):
    """
    Defines the signals available from a running worker thread.
    Supported signals are:
    - finished: No data
    - error: tuple (exctype, value, traceback.format_exc())
    - result: object data returned from processing
    """

    finished = pyqtSignal()
    error = pyqtSignal(tuple)  # exctype, value, traceback
    result = pyqtSignal(object)


class Worker(QRunnable):
    """Runs one function on a pool thread and reports through signals and a Future."""

    def __init__(self, fn: Callable, *args: Any, **kwargs: Any):
        super().__init__()
        self.fn = fn
        self.args = args
        self.kwargs = kwargs
        # Created on the submitting thread, so queued signals land back there.
        self.signals = WorkerSignals()
        self.future: Future = Future()
        self.setAutoDelete(False)

    def run(self):
        """Execute the worker's task."""
        if not self.future.set_running_or_notify_cancel():
            logger.info(f"Task '{getattr(self.fn, '__name__', self.fn)}' was cancelled before it started.")
            self.signals.finished.emit()
            return
        try:
            result = self.fn(*self.args, **self.kwargs)
        except Exception as e:
            exctype, value = sys.exc_info()[:2]
            tb = traceback.format_exc()
            logger.critical(
                f"Unhandled error in task '{getattr(self.fn, '__name__', self.fn)}': {e}",
                exc_info=True,
            )
            self.future.set_exception(e)
            self.signals.error.emit((exctype, value, tb))
        else:
            self.future.set_result(result)
            self.signals.result.emit(result)
        finally:
            self.signals.finished.emit()


class TaskRunner(QObject):
    """
    Single-writer task queue for container mutations.

    Every submission gets its own Worker, but the dedicated pool runs only
    `max_workers` of them at a time (one by default), in submission order.
    Callers get a Future back immediately; the optional callbacks are wired to
    the worker's signals and run on the thread that called submit().
    """

    def __init__(self, max_workers: int = 1):
        super().__init__()
        self.thread_pool = QThreadPool()
        self.thread_pool.setMaxThreadCount(max_workers)
        # Keeps workers (and their signal objects) alive until delivery
        self._active_workers: set[Worker] = set()

    def submit(
        self,
        fn: Callable,
        *args: Any,
        on_result: Callable | None = None,
        on_error: Callable | None = None,
        on_finished: Callable | None = None,
        **kwargs: Any,
    ) -> Future:
        worker = Worker(fn, *args, **kwargs)
        if on_result:
            worker.signals.result.connect(on_result)
        if on_error:
            worker.signals.error.connect(on_error)
        if on_finished:
            worker.signals.finished.connect(on_finished)
        worker.signals.finished.connect(lambda w=worker: self._active_workers.discard(w))

        self._active_workers.add(worker)
        logger.debug(f"Queueing task '{getattr(fn, '__name__', fn)}'")
        self.thread_pool.start(worker)
        return worker.future

    def wait_for_done(self, msecs: int = -1) -> bool:
        """Blocks until every queued task has run. Returns False on timeout."""
        return self.thread_pool.waitForDone(msecs)

    @property
    def pending_count(self) -> int:
        return len(self._active_workers)
