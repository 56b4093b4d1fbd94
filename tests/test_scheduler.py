"""Tests for the telemetry scheduler wiring."""
from __future__ import annotations

from unittest.mock import Mock

import pytest

from nexus_ops import scheduler as scheduler_module
from nexus_ops.scheduler import SAMPLER_JOB_ID, TelemetryScheduler


class FakeScheduler:
    instances: list["FakeScheduler"] = []

    def __init__(self):
        self.jobs = []
        self.started = False
        self.shutdown_calls = []
        FakeScheduler.instances.append(self)

    def add_job(self, func, trigger, **kwargs):
        self.jobs.append((func, trigger, kwargs))

    def start(self):
        self.started = True

    def shutdown(self, wait=True):
        self.shutdown_calls.append(wait)


@pytest.fixture
def fake_scheduler(monkeypatch):
    FakeScheduler.instances = []
    monkeypatch.setattr(scheduler_module, "AsyncIOScheduler", FakeScheduler)
    return FakeScheduler


def test_start_registers_interval_job(fake_scheduler):
    scheduler = TelemetryScheduler(Mock(), interval_seconds=4.0)
    scheduler.start()

    fake = fake_scheduler.instances[0]
    assert fake.started is True
    (_, trigger, kwargs), = fake.jobs
    assert trigger == "interval"
    assert kwargs["seconds"] == 4.0
    assert kwargs["id"] == SAMPLER_JOB_ID
    assert kwargs["max_instances"] == 1
    assert scheduler.running is True


def test_start_is_idempotent(fake_scheduler):
    scheduler = TelemetryScheduler(Mock())
    scheduler.start()
    scheduler.start()

    assert len(fake_scheduler.instances) == 1


def test_shutdown_cancels_job(fake_scheduler):
    scheduler = TelemetryScheduler(Mock())
    scheduler.start()
    scheduler.shutdown()
    scheduler.shutdown()

    fake = fake_scheduler.instances[0]
    assert fake.shutdown_calls == [False]
    assert scheduler.running is False


@pytest.mark.asyncio
async def test_job_ticks_sampler(fake_scheduler):
    sampler = Mock()
    scheduler = TelemetryScheduler(sampler)
    scheduler.start()

    job, _, _ = fake_scheduler.instances[0].jobs[0]
    await job()

    sampler.tick.assert_called_once_with()


def test_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        TelemetryScheduler(Mock(), interval_seconds=0)
