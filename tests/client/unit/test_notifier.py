from dndmesa.client.notifier import AudioUnavailableError, TurnChangeNotifier
from dndmesa.client.state import apply_snapshot

PARTY = [{"id": "p1", "name": "Aria"}, {"id": "p2", "name": "Goblin"}, {"id": "p3", "name": "Borin"}]


def _snapshot(index: int, participants=PARTY):
    return apply_snapshot({"participants": participants, "activeIndex": index})


def test_first_snapshot_records_silently_then_fires_on_change(fake_loop, tone_sink) -> None:
    notifier = TurnChangeNotifier(fake_loop, sink=tone_sink)

    assert notifier.observe(_snapshot(0)) is False
    assert notifier.observe(_snapshot(1)) is True
    fake_loop.advance(0.2)

    assert tone_sink.tones == [(740, 110), (880, 140)]


def test_second_tone_is_delayed(fake_loop, tone_sink) -> None:
    notifier = TurnChangeNotifier(fake_loop, sink=tone_sink)
    notifier.observe(_snapshot(0))
    notifier.observe(_snapshot(1))

    assert tone_sink.tones == [(740, 110)]
    fake_loop.advance(0.129)
    assert tone_sink.tones == [(740, 110)]
    fake_loop.advance(0.002)
    assert tone_sink.tones == [(740, 110), (880, 140)]


def test_redundant_snapshots_do_not_fire(fake_loop, tone_sink) -> None:
    notifier = TurnChangeNotifier(fake_loop, sink=tone_sink)

    notifier.observe(_snapshot(0))
    fired = [notifier.observe(_snapshot(0)) for _ in range(3)]

    assert fired == [False, False, False]
    assert tone_sink.tones == []


def test_leaving_combat_resets_to_no_prior_turn(fake_loop, tone_sink) -> None:
    notifier = TurnChangeNotifier(fake_loop, sink=tone_sink)
    notifier.observe(_snapshot(0))

    assert notifier.observe(_snapshot(0, participants=[])) is False
    assert notifier.tracking is False
    assert notifier.observe(_snapshot(2)) is False
    assert tone_sink.tones == []


def test_mute_suppresses_sound_but_keeps_tracking(fake_loop, tone_sink) -> None:
    notifier = TurnChangeNotifier(fake_loop, sink=tone_sink, muted=True)
    notifier.observe(_snapshot(0))

    assert notifier.observe(_snapshot(1)) is True
    fake_loop.advance(1)
    assert tone_sink.tones == []
    assert notifier.last_index == 1

    notifier.muted = False
    assert notifier.observe(_snapshot(1)) is False
    assert notifier.observe(_snapshot(2)) is True
    fake_loop.advance(1)
    assert tone_sink.tones == [(740, 110), (880, 140)]


def test_missing_audio_still_completes_transition(fake_loop) -> None:
    class BrokenSink:
        def play(self, frequency_hz: int, duration_ms: int) -> None:
            raise AudioUnavailableError("no device")

    silent = TurnChangeNotifier(fake_loop, sink=None)
    broken = TurnChangeNotifier(fake_loop, sink=BrokenSink())
    for notifier in (silent, broken):
        notifier.observe(_snapshot(0))
        assert notifier.observe(_snapshot(1)) is True
        assert notifier.last_index == 1

    assert fake_loop.pending == []


def test_close_cancels_pending_second_tone(fake_loop, tone_sink) -> None:
    notifier = TurnChangeNotifier(fake_loop, sink=tone_sink)
    notifier.observe(_snapshot(0))
    notifier.observe(_snapshot(1))

    notifier.close()
    fake_loop.advance(1)

    assert tone_sink.tones == [(740, 110)]
