import pytest

from solidq.queue import ChannelNotFoundError, Queue, QueueClosedError, Work


@pytest.fixture
def queue(tmp_path):
    q = Queue(str(tmp_path / "solidq.db"))
    yield q
    q.close()


def test_push_and_pop(queue):
    queue.push("jobs", Work("one", {"a": 1}))
    work = queue.pop("jobs")
    assert work == Work("one", {"a": 1})
    assert queue.pop("jobs") is None


def test_pop_in_key_order(queue):
    for key in ["b", "c", "a"]:
        queue.push("jobs", Work(key, key.upper()))
    popped = [queue.pop("jobs").id for _ in range(3)]
    assert popped == sorted(popped)
    assert popped == ["a", "b", "c"]


def test_push_same_id_replaces(queue):
    queue.push("jobs", Work("x", 1))
    queue.push("jobs", Work("x", 2))
    assert queue.count("jobs") == 1
    assert queue.pop("jobs").data == 2


def test_push_empty_id(queue):
    with pytest.raises(ValueError, match="work ID cannot be empty"):
        queue.push("jobs", Work("", {}))


def test_push_empty_channel(queue):
    with pytest.raises(ValueError):
        queue.push("", Work("x", {}))


def test_pop_missing_channel(queue):
    assert queue.pop("nothing") is None
    assert queue.pop_many("nothing", 3) == []


def test_count(queue):
    assert queue.count("jobs") == 0
    for key in ["a", "b", "c"]:
        queue.push("jobs", Work(key, None))
    assert queue.count("jobs") == 3
    queue.pop("jobs")
    assert queue.count("jobs") == 2


def test_pop_many(queue):
    for key in ["d", "a", "c", "b"]:
        queue.push("jobs", Work(key, {"k": key}))
    works = queue.pop_many("jobs", 2)
    assert [w.id for w in works] == ["a", "b"]
    assert [w.data for w in works] == [{"k": "a"}, {"k": "b"}]
    rest = queue.pop_many("jobs", 10)
    assert [w.id for w in rest] == ["c", "d"]
    assert queue.count("jobs") == 0


def test_pop_many_non_positive(queue):
    queue.push("jobs", Work("a", 1))
    assert queue.pop_many("jobs", 0) == []
    assert queue.count("jobs") == 1


def test_channels_listed_sorted(queue):
    queue.push("zeta", Work("1", None))
    queue.push("alpha", Work("1", None))
    queue.push("alpha", Work("2", None))
    assert queue.list_channels() == ["alpha", "zeta"]
    assert queue.list_channels_with_count() == {"alpha": 2, "zeta": 1}


def test_emptied_channel_still_listed(queue):
    queue.push("jobs", Work("a", None))
    queue.pop("jobs")
    assert queue.list_channels() == ["jobs"]
    assert queue.list_channels_with_count() == {"jobs": 0}


def test_reset_channel(queue):
    queue.push("jobs", Work("a", None))
    queue.push("other", Work("a", None))
    queue.reset_channel("jobs")
    assert queue.list_channels() == ["other"]
    assert queue.count("jobs") == 0


def test_reset_missing_channel(queue):
    with pytest.raises(ChannelNotFoundError):
        queue.reset_channel("nothing")


def test_persistence(tmp_path):
    path = str(tmp_path / "persist.db")
    with Queue(path) as q:
        q.push("jobs", Work("a", {"v": [1, 2]}))
    with Queue(path) as q:
        assert q.pop("jobs") == Work("a", {"v": [1, 2]})


def test_closed_queue_raises(tmp_path):
    q = Queue(str(tmp_path / "closed.db"))
    q.close()
    q.close()
    with pytest.raises(QueueClosedError, match="database is not open"):
        q.push("jobs", Work("a", None))
    with pytest.raises(QueueClosedError):
        q.pop("jobs")
    with pytest.raises(QueueClosedError):
        q.count("jobs")
    with pytest.raises(QueueClosedError):
        q.list_channels()
    with pytest.raises(QueueClosedError):
        q.list_channels_with_count()
    with pytest.raises(QueueClosedError):
        q.reset_channel("jobs")
    with pytest.raises(QueueClosedError):
        q.pop_many("jobs", 0)


def test_channels_are_isolated(queue):
    queue.push("one", Work("a", 1))
    queue.push("two", Work("a", 2))
    assert queue.pop("two").data == 2
    assert queue.pop("one").data == 1