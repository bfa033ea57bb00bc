"""Tests for utils/async_utils.py - Workers and the single-writer task queue."""

import threading
import time

import pytest

from cellar.utils.async_utils import TaskRunner, Worker


class TestWorker:
    def test_result_signal_and_future(self, qtbot):
        worker = Worker(lambda a, b: a + b, 2, 3)
        with qtbot.waitSignal(worker.signals.result, timeout=2000) as blocker:
            worker.run()
        assert blocker.args == [5]
        assert worker.future.result() == 5

    def test_error_signal_and_future(self, qtbot):
        def boom():
            raise RuntimeError("broken")

        worker = Worker(boom)
        with qtbot.waitSignal(worker.signals.error, timeout=2000) as blocker:
            worker.run()

        exctype, value, tb = blocker.args[0]
        assert exctype is RuntimeError
        assert str(value) == "broken"
        assert "RuntimeError" in tb
        with pytest.raises(RuntimeError):
            worker.future.result()

    def test_cancelled_future_skips_work(self, qtbot):
        called = []
        worker = Worker(lambda: called.append(1))
        worker.future.cancel()
        with qtbot.waitSignal(worker.signals.finished, timeout=2000):
            worker.run()
        assert called == []


class TestTaskRunner:
    def test_submit_returns_future(self, qtbot):
        runner = TaskRunner()
        future = runner.submit(lambda: "done")
        assert future.result(timeout=5) == "done"
        runner.wait_for_done()

    def test_callbacks_run_on_submitting_thread(self, qtbot):
        runner = TaskRunner()
        seen = []

        def on_result(value):
            seen.append((value, threading.current_thread() is threading.main_thread()))

        runner.submit(lambda: 7, on_result=on_result)
        qtbot.waitUntil(lambda: bool(seen), timeout=2000)

        assert seen == [(7, True)]

    def test_tasks_run_one_at_a_time_in_order(self, qtbot):
        runner = TaskRunner(max_workers=1)
        order = []
        running = []

        def task(n):
            running.append(n)
            assert len(running) == 1
            time.sleep(0.01)
            order.append(n)
            running.remove(n)
            return n

        futures = [runner.submit(task, n) for n in range(5)]

        assert [f.result(timeout=5) for f in futures] == [0, 1, 2, 3, 4]
        assert order == [0, 1, 2, 3, 4]
        assert runner.wait_for_done(5000)

    def test_error_callback(self, qtbot):
        runner = TaskRunner()
        errors = []

        def fail():
            raise ValueError("nope")

        future = runner.submit(fail, on_error=errors.append)
        qtbot.waitUntil(lambda: bool(errors), timeout=2000)

        assert errors[0][0] is ValueError
        assert isinstance(future.exception(), ValueError)

    def test_workers_released_after_delivery(self, qtbot):
        runner = TaskRunner()
        finished = []
        runner.submit(lambda: None, on_finished=lambda: finished.append(True))
        qtbot.waitUntil(lambda: bool(finished), timeout=2000)
        qtbot.waitUntil(lambda: runner.pending_count == 0, timeout=2000)
