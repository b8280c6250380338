# =============================================================================
# tests/unit/test_snapshot_stream.py
# Unit Tests for SnapshotStream
# =============================================================================


class TestSnapshotStream:
    """Test replay-latest multicast"""

    def test_subscriber_gets_latest_immediately(self):
        from komfort_core.offline.snapshot_stream import SnapshotStream

        stream = SnapshotStream([1])
        stream.publish([1, 2])
        received = []

        stream.subscribe(received.append)

        assert received == [[1, 2]]

    def test_every_subscriber_gets_every_publish(self):
        from komfort_core.offline.snapshot_stream import SnapshotStream

        stream = SnapshotStream([])
        first, second = [], []
        stream.subscribe(first.append)
        stream.subscribe(second.append)

        stream.publish(["a"])

        assert first == [[], ["a"]]
        assert second == [[], ["a"]]

    def test_unsubscribe_stops_delivery(self):
        from komfort_core.offline.snapshot_stream import SnapshotStream

        stream = SnapshotStream([])
        received = []
        sub = stream.subscribe(received.append)

        sub.unsubscribe()
        sub.unsubscribe()
        stream.publish(["late"])

        assert received == [[]]
        assert not sub.active
        assert stream.subscriber_count == 0

    def test_context_manager_unsubscribes(self):
        from komfort_core.offline.snapshot_stream import SnapshotStream

        stream = SnapshotStream([])
        with stream.subscribe(lambda items: None):
            assert stream.subscriber_count == 1

        assert stream.subscriber_count == 0

    def test_failing_subscriber_does_not_block_others(self):
        from komfort_core.offline.snapshot_stream import SnapshotStream

        stream = SnapshotStream([])
        received = []

        def broken(items):
            raise RuntimeError("boom")

        stream.subscribe(broken)
        stream.subscribe(received.append)
        stream.publish([1])

        assert received == [[], [1]]
        assert stream.latest == [1]

    def test_each_subscriber_gets_its_own_copy(self):
        from komfort_core.offline.snapshot_stream import SnapshotStream

        stream = SnapshotStream([])
        received = []
        stream.subscribe(lambda items: items.append("changed"))
        stream.subscribe(received.append)

        stream.publish([{"id": 1}])

        assert received[-1] == [{"id": 1}]
        assert stream.latest == [{"id": 1}]

    def test_latest_is_a_copy(self):
        from komfort_core.offline.snapshot_stream import SnapshotStream

        stream = SnapshotStream([{"id": 1}])
        stream.latest[0]["id"] = 2

        assert stream.latest == [{"id": 1}]
