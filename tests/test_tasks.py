import logging

from src.core.tasks import InlineTaskRunner, ThreadPoolTaskRunner


def _boom():
    raise RuntimeError("task exploded")


def test_inline_runner_runs_immediately():
    calls = []
    InlineTaskRunner().submit("record", calls.append, "x")
    assert calls == ["x"]


def test_inline_runner_logs_and_drops_failures(caplog):
    with caplog.at_level(logging.ERROR):
        InlineTaskRunner().submit("explode", _boom)
    assert "explode" in caplog.text
    assert "task exploded" in caplog.text


def test_thread_pool_runner_runs_and_logs_failures(caplog):
    runner = ThreadPoolTaskRunner(max_workers=1)
    calls = []
    with caplog.at_level(logging.ERROR):
        runner.submit("record", calls.append, 1)
        runner.submit("explode", _boom)
        runner.shutdown(wait=True)

    assert calls == [1]
    assert "task exploded" in caplog.text


def test_thread_pool_runner_drops_tasks_after_shutdown(caplog):
    runner = ThreadPoolTaskRunner(max_workers=1)
    runner.shutdown(wait=True)
    calls = []
    with caplog.at_level(logging.WARNING):
        runner.submit("late", calls.append, 1)
    assert calls == []
    assert "late" in caplog.text
