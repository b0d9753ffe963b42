"""
Unit tests for the background device poller.
"""

import asyncio
import pytest
from unittest.mock import Mock

from pvtest.config import Settings
from pvtest.core.polling import DevicePoller


def _counter_reader():
    state = {"n": 0}

    async def read():
        state["n"] += 1
        return {"voltage": float(state["n"]), "current": 1.0}

    return read


class TestPollOnce:

    def test_enqueues_snapshot(self):
        async def scenario():
            poller = DevicePoller(_counter_reader())
            snapshot = await poller.poll_once()
            return snapshot, poller.pending()

        snapshot, pending = asyncio.run(scenario())
        assert snapshot == {"voltage": 1.0, "current": 1.0}
        assert pending == [snapshot]

    def test_none_is_skipped(self):
        async def read():
            return None

        async def scenario():
            poller = DevicePoller(read)
            await poller.poll_once()
            return poller.pending()

        assert asyncio.run(scenario()) == []

    def test_full_queue_drops_oldest(self):
        async def scenario():
            poller = DevicePoller(_counter_reader(), maxsize=2)
            for _ in range(3):
                await poller.poll_once()
            return poller

        poller = asyncio.run(scenario())
        assert poller.dropped == 1
        assert [s["voltage"] for s in poller.pending()] == [2.0, 3.0]

    def test_from_settings(self):
        settings = Settings(poll_interval_seconds=0.5, poll_queue_size=3)
        poller = DevicePoller.from_settings(_counter_reader(), settings)
        assert poller.interval == 0.5
        assert poller.queue.maxsize == 3

    @pytest.mark.parametrize("kwargs", [{"interval": 0}, {"maxsize": 0}])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            DevicePoller(_counter_reader(), **kwargs)


class TestBackgroundLoop:

    def test_start_and_stop(self):
        async def scenario():
            poller = DevicePoller(_counter_reader(), interval=0.01)
            poller.start()
            assert poller.running
            await asyncio.sleep(0.05)
            await poller.stop()
            return poller

        poller = asyncio.run(scenario())
        assert not poller.running
        assert len(poller.pending()) >= 1

    def test_read_errors_do_not_stop_loop(self):
        calls = {"n": 0}

        async def flaky():
            calls["n"] += 1
            if calls["n"] == 1:
                raise IOError("bus timeout")
            return {"temperature": 25.0}

        async def scenario():
            poller = DevicePoller(flaky, interval=0.01)
            poller.start()
            await asyncio.sleep(0.05)
            await poller.stop()
            return poller

        poller = asyncio.run(scenario())
        assert calls["n"] >= 2
        assert poller.pending()

    def test_stop_without_start(self):
        async def scenario():
            poller = DevicePoller(_counter_reader())
            await poller.stop()
            return poller.running

        assert asyncio.run(scenario()) is False


class TestDrainInto:

    def test_records_batch(self):
        manager = Mock()
        manager.record_data_points.return_value = [object(), object()]

        async def scenario():
            poller = DevicePoller(_counter_reader())
            await poller.poll_once()
            await poller.poll_once()
            return poller

        poller = asyncio.run(scenario())
        stored = poller.drain_into(manager, 7)

        assert stored == 2
        args = manager.record_data_points.call_args[0]
        assert args[0] == 7
        assert [s["voltage"] for s in args[1]] == [1.0, 2.0]
        assert poller.pending() == []

    def test_nothing_queued(self):
        manager = Mock()
        poller = DevicePoller(_counter_reader())

        assert poller.drain_into(manager, 7) == 0
        manager.record_data_points.assert_not_called()

    def test_into_real_manager(self, manager):
        experiment = manager.create("polled")
        manager.start(experiment.id)

        async def scenario():
            poller = DevicePoller(_counter_reader())
            for _ in range(3):
                await poller.poll_once()
            return poller

        poller = asyncio.run(scenario())
        assert poller.drain_into(manager, experiment.id) == 3
        assert manager.count_data_points(experiment.id) == 3
