import asyncio

from matchcast.monitor import JOB_ID, HealthMonitor


def test_monitor_disabled_with_zero_interval(store, make_engine):
    monitor = HealthMonitor(make_engine(store), interval_minutes=0)

    monitor.start()

    assert monitor.running is False


def test_monitor_schedules_check_all(store, make_engine):
    engine = make_engine(store)
    monitor = HealthMonitor(engine, interval_minutes=15)

    async def scenario():
        monitor.start()
        try:
            assert monitor.running
            job = monitor.scheduler.get_job(JOB_ID)
            assert job.func == engine.check_all
            assert job.trigger.interval.total_seconds() == 15 * 60
        finally:
            monitor.stop()

    asyncio.run(scenario())
    assert monitor.running is False
