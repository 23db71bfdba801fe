from praxis.services.transcript import TranscriptItem
from praxis.services.transcript_window import select_window


def _item(text, start_ms, duration_ms=1000):
    return TranscriptItem(text=text, start_ms=start_ms, duration_ms=duration_ms)


def test_empty_transcript_returns_zero_window():
    w = select_window([], 600_000, 10)
    assert (w.text, w.start_ms, w.end_ms) == ("", 0, 0)


def test_gate_before_five_minutes():
    transcript = [_item("a", 0), _item("b", 60_000)]
    for t in (0, 1, 120_000, 299_999):
        w = select_window(transcript, t, 10)
        assert w.text == ""
        assert w.start_ms == 0
        assert w.end_ms == t


def test_selects_items_overlapping_window():
    # t=320000, m=1 gives [260000, 320000]
    transcript = [_item("a", 0), _item("b", 310_000)]
    w = select_window(transcript, 320_000, 1)
    assert w.text == "b"
    assert w.start_ms == 310_000
    assert w.end_ms == 311_000


def test_ten_minute_window_clamps_to_video_start():
    # t=320000, m=10: start is max(0, 320000 - 600000) = 0
    transcript = [_item("a", 0), _item("b", 310_000)]
    w = select_window(transcript, 320_000, 10)
    assert w.text == "a b"
    assert w.start_ms == 0
    assert w.end_ms == 311_000


def test_item_ending_exactly_at_window_start_is_included():
    # window for t=900000, m=10 is [300000, 900000]
    transcript = [_item("edge", 299_000, 1000), _item("inside", 400_000)]
    w = select_window(transcript, 900_000, 10)
    assert w.text == "edge inside"
    assert w.start_ms == 299_000


def test_nothing_selected_reports_requested_bounds():
    transcript = [_item("early", 0)]
    w = select_window(transcript, 1_200_000, 5)
    assert w.text == ""
    assert w.start_ms == 900_000
    assert w.end_ms == 1_200_000


def test_greedy_truncation_drops_whole_items():
    transcript = [_item("aaaa", 300_000), _item("bbbb", 301_000), _item("cccc", 302_000)]
    # "aaaa bbbb" is 9 chars; adding " cccc" would need 14 > 12
    w = select_window(transcript, 310_000, 10, max_chars=12)
    assert w.text == "aaaa bbbb"
    assert len(w.text) <= 12
    # bounds still cover every overlapping item
    assert w.end_ms == 303_000


def test_text_never_exceeds_max_chars():
    transcript = [_item("word" * 3, 300_000 + i * 1000) for i in range(50)]
    for max_chars in (0, 5, 13, 40, 100):
        w = select_window(transcript, 400_000, 30, max_chars=max_chars)
        assert len(w.text) <= max_chars


def test_deterministic():
    transcript = [_item("x", 300_000), _item("y", 305_000)]
    assert select_window(transcript, 320_000, 3) == select_window(transcript, 320_000, 3)
