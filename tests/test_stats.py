"""
Tests for run statistics and the stats snapshot writer
"""
import asyncio
import json
import pytest

from monitor.stats import RunStatistics, SnapshotWriter, strip_tags


class TestRunStatistics:

    def test_log_is_bounded_most_recent_first(self):
        stats = RunStatistics(log_cap=3, clock=lambda: 0)
        for i in range(5):
            stats.record(f"entry {i}")
        assert len(stats.alerts) == 3
        assert stats.alerts[0] == '1970-01-01T00:00:00Z | entry 4'
        assert stats.alerts[-1].endswith('| entry 2')

    def test_mark_result(self):
        stats = RunStatistics()
        assert stats.mark_result('win')
        assert stats.mark_result('lose')
        assert not stats.mark_result('WIN')
        assert (stats.wins, stats.losses) == (1, 1)

    def test_snapshot_keys(self):
        stats = RunStatistics(clock=lambda: 12.5)
        stats.increment_scanned()
        stats.mark_run()
        stats.set_error('RPC timeout')
        snap = stats.snapshot()
        assert snap == {
            'scanned': 1,
            'alerts': [],
            'wins': 0,
            'losses': 0,
            'scannerOn': False,
            'lastError': 'RPC timeout',
            'lastRun': 12500,
        }

    def test_restore_respects_cap(self):
        stats = RunStatistics(log_cap=2)
        stats.restore({'scanned': 7, 'alerts': ['a', 'b', 'c'], 'wins': 2, 'lastError': 'x', 'scannerOn': True})
        assert stats.scanned == 7
        assert stats.alerts == ['a', 'b']
        assert stats.wins == 2 and stats.losses == 0
        assert stats.last_error == 'x'
        # the live flag is never restored
        assert stats.scanner_on is False


class TestSnapshotWriter:

    def test_writes_synchronously_without_loop(self, tmp_path):
        path = tmp_path / 'stats.json'
        writer = SnapshotWriter(str(path))
        stats = RunStatistics(writer=writer)
        stats.increment_scanned()

        assert json.loads(path.read_text())['scanned'] == 1
        assert writer.load()['scanned'] == 1
        assert not (tmp_path / 'stats.json.tmp').exists()

    @pytest.mark.asyncio
    async def test_coalesces_writes(self, tmp_path):
        path = tmp_path / 'stats.json'
        writer = SnapshotWriter(str(path), delay=0.01)
        stats = RunStatistics(writer=writer)
        for _ in range(10):
            stats.increment_scanned()
        await asyncio.sleep(0.05)

        assert writer.writes == 1
        assert json.loads(path.read_text())['scanned'] == 10

    @pytest.mark.asyncio
    async def test_flush_writes_pending_state(self, tmp_path):
        path = tmp_path / 'stats.json'
        writer = SnapshotWriter(str(path), delay=60)
        stats = RunStatistics(writer=writer)
        stats.set_error('late')
        await writer.flush()
        assert writer.writes == 1
        assert json.loads(path.read_text())['lastError'] == 'late'

    def test_write_failure_is_swallowed(self, tmp_path):
        writer = SnapshotWriter(str(tmp_path / 'missing' / 'stats.json'))
        stats = RunStatistics(writer=writer)
        stats.record('still counted')
        assert writer.writes == 0
        assert len(stats.alerts) == 1

    def test_load_missing_or_corrupt(self, tmp_path):
        path = tmp_path / 'stats.json'
        assert SnapshotWriter(str(path)).load() is None
        path.write_text('{not json')
        assert SnapshotWriter(str(path)).load() is None
        path.write_text('[1, 2]')
        assert SnapshotWriter(str(path)).load() is None

    def test_restore_mistyped_snapshot(self, tmp_path):
        path = tmp_path / 'stats.json'
        path.write_text(json.dumps({'scanned': 'n/a', 'alerts': 5, 'wins': '3', 'losses': [1], 'lastRun': {}}))
        stats = RunStatistics()

        stats.restore(SnapshotWriter(str(path)).load())

        assert stats.scanned == 0
        assert stats.alerts == []
        assert stats.wins == 3
        assert stats.losses == 0
        assert stats.last_run is None


def test_strip_tags():
    assert strip_tags('<b>🔥 SAFE</b>\nMint: <code>abc</code>') == '🔥 SAFE\nMint: abc'
    assert strip_tags(None) == ''
