import asyncio
import threading

import pytest

from library_notifier.application.services.scheduler import NotificationScheduler, SchedulerState


async def wait_until(predicate, timeout=2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


@pytest.mark.asyncio
async def test_stop_during_warm_up_runs_no_cycle():
    calls = []
    scheduler = NotificationScheduler(
        dispatch_phase=lambda: calls.append("dispatch"),
        reminder_phase=lambda: calls.append("remind"),
        interval_seconds=300,
        startup_delay_seconds=30,
    )
    scheduler.start()
    await asyncio.sleep(0)
    assert scheduler.state == SchedulerState.RUNNING

    await asyncio.wait_for(scheduler.stop(), timeout=1)

    assert calls == []
    assert scheduler.state == SchedulerState.STOPPED


@pytest.mark.asyncio
async def test_runs_dispatch_then_reminders_each_cycle():
    calls = []
    scheduler = NotificationScheduler(
        dispatch_phase=lambda: calls.append("dispatch"),
        reminder_phase=lambda: calls.append("remind"),
        interval_seconds=0.01,
        startup_delay_seconds=0,
    )
    scheduler.start()
    await wait_until(lambda: scheduler.completed_cycles >= 2)
    await scheduler.stop()

    assert calls[:4] == ["dispatch", "remind", "dispatch", "remind"]


@pytest.mark.asyncio
async def test_cycle_error_is_logged_and_loop_continues(caplog):
    attempts = {"n": 0}

    def flaky_dispatch():
        attempts["n"] += 1
        if attempts["n"] == 1:
            raise RuntimeError("database restarting")

    scheduler = NotificationScheduler(
        dispatch_phase=flaky_dispatch,
        reminder_phase=lambda: 0,
        interval_seconds=0.01,
        startup_delay_seconds=0,
    )
    scheduler.start()
    await wait_until(lambda: scheduler.completed_cycles >= 1)
    await scheduler.stop()

    assert scheduler.failed_cycles == 1
    assert "Error in notification polling cycle" in caplog.text


@pytest.mark.asyncio
async def test_stop_interrupts_sleep_between_cycles():
    scheduler = NotificationScheduler(
        dispatch_phase=lambda: None,
        reminder_phase=lambda: 0,
        interval_seconds=3600,
        startup_delay_seconds=0,
    )
    task = scheduler.start()
    await wait_until(lambda: scheduler.completed_cycles == 1)

    scheduler.request_stop()
    await asyncio.wait_for(task, timeout=1)
    assert scheduler.state == SchedulerState.STOPPED


@pytest.mark.asyncio
async def test_stop_during_dispatch_finishes_send_and_skips_reminders():
    started = threading.Event()
    release = threading.Event()
    finished = []
    reminders = []

    def slow_dispatch():
        started.set()
        release.wait(2)
        finished.append(True)

    scheduler = NotificationScheduler(
        dispatch_phase=slow_dispatch,
        reminder_phase=lambda: reminders.append(True),
        interval_seconds=300,
        startup_delay_seconds=0,
    )
    task = scheduler.start()
    assert await asyncio.to_thread(started.wait, 2)

    scheduler.request_stop()
    release.set()
    await asyncio.wait_for(task, timeout=2)

    assert finished == [True]
    assert reminders == []
    assert scheduler.completed_cycles == 0


@pytest.mark.asyncio
async def test_start_is_idempotent_while_running():
    scheduler = NotificationScheduler(lambda: None, lambda: 0, interval_seconds=300, startup_delay_seconds=30)
    first = scheduler.start()
    assert scheduler.start() is first
    await scheduler.stop()
