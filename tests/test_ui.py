import pytest

from tinyhttpd.display import Display
from tinyhttpd.ui import (
    AnimationDirection,
    DisplayUi,
    FrameState,
    IndicatorPosition,
    LoadingStage,
)


def make_display():
    return Display(lambda command: None, lambda data: None)


def make_ui(frame_count=3, clock=None):
    calls = []

    def make_frame(number):
        def frame(display, state, x, y):
            calls.append((number, x, y))

        return frame

    ui = DisplayUi(make_display(), clock)
    ui.set_frames([make_frame(n) for n in range(frame_count)])
    return ui, calls


def test_defaults_from_source():
    ui, _ = make_ui()
    assert ui.ticks_per_frame == 151
    assert ui.ticks_per_transition == 15
    assert ui.update_interval == 33
    assert ui.state.frame_state == FrameState.FIXED


def test_next_frame_number_wraps_both_ways():
    ui, _ = make_ui(3)
    assert ui.next_frame_number() == 1
    ui.set_auto_transition_backwards()
    assert ui.next_frame_number() == 2
    ui.set_auto_transition_forwards()
    ui.state.current_frame = 2
    assert ui.next_frame_number() == 0


def test_fixed_frame_drawn_at_origin():
    ui, calls = make_ui()
    ui.tick()
    assert calls == [(0, 0, 0)]


def test_auto_transition_moves_to_next_frame():
    ui, _ = make_ui()
    ui.ticks_per_frame = 2
    ui.ticks_per_transition = 3
    ui.tick()
    assert ui.state.frame_state == FrameState.FIXED
    ui.tick()
    assert ui.state.frame_state == FrameState.IN_TRANSITION
    for _ in range(3):
        ui.tick()
    assert ui.state.frame_state == FrameState.FIXED
    assert ui.state.current_frame == 1


def test_no_auto_transition_stays_fixed():
    ui, _ = make_ui()
    ui.auto_transition = False
    ui.ticks_per_frame = 1
    for _ in range(5):
        ui.tick()
    assert ui.state.frame_state == FrameState.FIXED
    assert ui.state.current_frame == 0


def test_transition_draws_both_frames_at_start():
    ui, calls = make_ui()
    ui.ticks_per_transition = 10
    ui.next_frame()
    ui.draw_frame()
    assert calls == [(0, 0, 0), (1, -128, 0)]


def test_slide_left_mirrors_slide_right():
    ui, calls = make_ui()
    ui.frame_animation_direction = AnimationDirection.SLIDE_LEFT
    ui.next_frame()
    ui.draw_frame()
    assert calls[1] == (1, 128, 0)


def test_transition_to_lower_frame_goes_backwards():
    ui, _ = make_ui(4)
    ui.switch_to_frame(3)
    ui.transition_to_frame(1)
    assert ui.state.frame_transition_direction == -1
    assert ui.next_frame_number() == 1
    assert ui.state.frame_state == FrameState.IN_TRANSITION


def test_switch_to_frame_out_of_range_ignored():
    ui, _ = make_ui(2)
    ui.switch_to_frame(5)
    assert ui.state.current_frame == 0
    ui.switch_to_frame(1)
    assert ui.state.current_frame == 1


def test_manual_control_reverted_after_transition():
    ui, _ = make_ui()
    ui.set_auto_transition_backwards()
    ui.next_frame()
    assert ui.state.frame_transition_direction == 1
    ui.ticks_per_transition = 1
    ui.tick()
    assert ui.state.current_frame == 1
    ui.tick()
    assert ui.state.frame_transition_direction == -1
    assert ui.state.manual_control is False


def test_set_target_fps_same_interval_keeps_ticks():
    ui, _ = make_ui()
    ui.set_target_fps(30)
    assert ui.update_interval == 33
    assert ui.ticks_per_frame == 151


def test_set_target_fps_invalid():
    ui, _ = make_ui()
    with pytest.raises(ValueError):
        ui.set_target_fps(0)


def test_time_per_frame_roundtrip():
    ui, _ = make_ui()
    ui.set_time_per_frame(ui.update_interval * 7)
    assert ui.ticks_per_frame == 7
    ui.set_time_per_transition(ui.update_interval * 4)
    assert ui.ticks_per_transition == 4


def test_update_respects_interval():
    now = [100]
    ui, calls = make_ui(clock=lambda: now[0])
    ui.update()
    assert ui.state.last_update == 100
    assert len(calls) == 1
    now[0] = 110
    remaining = ui.update()
    assert len(calls) == 1
    assert remaining == ui.update_interval


def test_indicator_highlights_current_frame():
    ui, _ = make_ui(3)
    ui.tick()
    display = ui.display
    # frame 0 uses the active symbol, whose second column is lit
    assert display.get_pixel(46 + 1, 56 + 3)
    # frame 1 uses the inactive symbol, whose second column is dark
    assert not display.get_pixel(58 + 1, 56 + 3)
    assert display.get_pixel(58 + 3, 56 + 3)


def test_indicator_disabled_draws_nothing():
    ui, _ = make_ui(3)
    ui.should_draw_indicators = False
    ui.tick()
    lit = [
        (x, y)
        for x in range(128)
        for y in range(64)
        if ui.display.get_pixel(x, y)
    ]
    assert lit == []


def test_indicator_hidden_by_frame():
    ui = DisplayUi(make_display())

    def frame(display, state, x, y):
        state.is_indicator_drawn = False

    ui.set_frames([frame, frame])
    ui.indicator_position = IndicatorPosition.TOP
    ui.tick()
    assert not any(ui.display.get_pixel(x, y) for x in range(128) for y in range(8))


def test_overlays_receive_state():
    ui, _ = make_ui()
    seen = []
    ui.set_overlays([lambda display, state: seen.append(state.current_frame)])
    ui.switch_to_frame(2)
    ui.tick()
    assert seen == [2]


def test_loading_process_order_and_progress():
    ui, _ = make_ui()
    ui.sleep = lambda seconds: None
    events = []
    ui.loading_draw_function = lambda display, stage, progress: events.append((stage.process, progress))
    stages = [
        LoadingStage("one", lambda: events.append("ran one")),
        LoadingStage("two", lambda: events.append("ran two")),
    ]
    ui.run_loading_process(stages)
    assert events == [("one", 0), "ran one", ("two", 50), "ran two", ("two", 100)]


def test_loading_process_needs_stages():
    ui, _ = make_ui()
    with pytest.raises(ValueError):
        ui.run_loading_process([])