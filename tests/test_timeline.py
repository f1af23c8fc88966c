from audioscribe.core.timeline import TimelineManager


def test_events_are_bounded_and_filterable():
    timeline = TimelineManager(max_events=3)
    for i in range(5):
        timeline.add_event("speak" if i % 2 else "state", str(i))

    assert [ev.text for ev in timeline.get_events()] == ["2", "3", "4"]
    assert [ev.text for ev in timeline.get_events("speak")] == ["3"]

    timeline.clear()
    assert timeline.get_events() == []
