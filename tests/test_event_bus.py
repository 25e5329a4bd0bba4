from drysland.events import BlockActivated, EventBus, LevelCompleted, LevelSaved


def test_subscribe_publish_unsubscribe():
    bus = EventBus()
    got = []
    off = bus.subscribe(LevelCompleted, got.append)
    assert bus.publish(LevelCompleted(level=3, coordinate=(2, -1))) == 1
    assert got[0].level == 3
    off()
    off()
    assert bus.publish(LevelCompleted(level=4, coordinate=(0, 1))) == 0
    assert len(got) == 1


def test_delivery_is_per_type():
    bus = EventBus()
    got = []
    bus.subscribe(LevelSaved, got.append)
    bus.publish(BlockActivated(coordinate=(1, 0)))
    assert got == []
    assert bus.subscriber_count() == 1
    assert bus.subscriber_count(BlockActivated) == 0


def test_failing_handler_does_not_stop_delivery(capsys):
    bus = EventBus()
    got = []

    def boom(ev):
        raise RuntimeError("handler broke")

    bus.subscribe(LevelSaved, boom)
    bus.subscribe(LevelSaved, got.append)
    assert bus.publish(LevelSaved(level=1, timestamp=10)) == 2
    assert len(got) == 1
    err = capsys.readouterr().err
    assert "event=handler_failed" in err


def test_event_to_dict_has_type():
    d = BlockActivated(coordinate=(1, 0), opened=((2, 0),)).to_dict()
    assert d["type"] == "BlockActivated"
    assert list(d["coordinate"]) == [1, 0]
