"""Frame-based user interface on top of the OLED display: slides, indicators, overlays."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Sequence

from tinyhttpd.display import Color, Display
from tinyhttpd.text import TextAlignment, TextDisplay

ACTIVE_SYMBOL = bytes([0x00, 0x18, 0x3C, 0x7E, 0x7E, 0x3C, 0x18, 0x00])
INACTIVE_SYMBOL = bytes([0x00, 0x00, 0x00, 0x18, 0x18, 0x00, 0x00, 0x00])

_SCREEN_WIDTH = 128
_SCREEN_HEIGHT = 64
_LOADING_PAUSE_S = 0.15


class AnimationDirection(Enum):
    """Direction in which frames slide during a transition."""

    SLIDE_UP = 0
    SLIDE_DOWN = 1
    SLIDE_LEFT = 2
    SLIDE_RIGHT = 3


class IndicatorPosition(Enum):
    """Screen edge on which the frame indicator is drawn."""

    TOP = 0
    RIGHT = 1
    BOTTOM = 2
    LEFT = 3


class IndicatorDirection(Enum):
    """Order in which frames appear in the indicator."""

    LEFT_RIGHT = 0
    RIGHT_LEFT = 1


class FrameState(Enum):
    """Whether a frame is shown still or the UI is sliding to another one."""

    IN_TRANSITION = 0
    FIXED = 1


@dataclass
class UiState:
    """State handed to frame and overlay callbacks."""

    last_update: int = 0
    ticks_since_last_state_switch: int = 0
    frame_state: FrameState = FrameState.FIXED
    current_frame: int = 0
    is_indicator_drawn: bool = True
    frame_transition_direction: int = 1
    manual_control: bool = False
    user_data: Any = None


@dataclass
class LoadingStage:
    """One step of a loading process: a label and the work to do."""

    process: str
    callback: Callable[[], Any]


FrameCallback = Callable[[Display, UiState, int, int], Any]
OverlayCallback = Callable[[Display, UiState], Any]
LoadingDrawFunction = Callable[[Display, LoadingStage, int], Any]


def _default_loading_screen(display: Display, stage: LoadingStage, progress: int) -> None:
    if isinstance(display, TextDisplay):
        display.text_alignment = TextAlignment.CENTER
        display.draw_string(64, 18, stage.process)
    display.draw_progress_bar(4, 32, 120, 8, progress)


def _milliseconds() -> int:
    return int(time.monotonic() * 1000)


class DisplayUi:
    """Cycles through frames on a display, with slide animations and an indicator.

    Frames are called as ``frame(display, state, x, y)``, overlays as
    ``overlay(display, state)``.  ``clock`` returns the current time in
    milliseconds.
    """

    def __init__(self, display: Display, clock: Optional[Callable[[], int]] = None) -> None:
        self.display = display
        self.clock = clock if clock is not None else _milliseconds
        self.sleep: Callable[[float], Any] = time.sleep

        self.indicator_position = IndicatorPosition.BOTTOM
        self.indicator_direction = IndicatorDirection.LEFT_RIGHT
        self.active_symbol = ACTIVE_SYMBOL
        self.inactive_symbol = INACTIVE_SYMBOL
        self.should_draw_indicators = True
        self.frame_animation_direction = AnimationDirection.SLIDE_RIGHT
        self.last_transition_direction = 1
        self.ticks_per_frame = 151
        self.ticks_per_transition = 15
        self.auto_transition = True
        self.frames: list[FrameCallback] = []
        self.overlays: list[OverlayCallback] = []
        self.next_frame_index = -1
        self.indicator_draw_state = 1
        self.loading_draw_function: LoadingDrawFunction = _default_loading_screen
        self.update_interval = 33
        self.state = UiState()

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    def set_target_fps(self, fps: int) -> None:
        """Change the update rate, keeping frame and transition durations in time."""
        if fps <= 0:
            raise ValueError("fps must be positive")
        old_interval = self.update_interval
        self.update_interval = int(1000 / fps)
        if self.update_interval <= 0:
            raise ValueError("fps is too high")
        ratio = old_interval / self.update_interval
        self.ticks_per_frame = int(self.ticks_per_frame * ratio)
        self.ticks_per_transition = int(self.ticks_per_transition * ratio)

    def set_time_per_frame(self, time_ms: int) -> None:
        """Set how long each frame stays still, in milliseconds."""
        self.ticks_per_frame = int(time_ms / self.update_interval)

    def set_time_per_transition(self, time_ms: int) -> None:
        """Set how long a transition takes, in milliseconds."""
        self.ticks_per_transition = int(time_ms / self.update_interval)

    def set_auto_transition_forwards(self) -> None:
        self.state.frame_transition_direction = 1
        self.last_transition_direction = 1

    def set_auto_transition_backwards(self) -> None:
        self.state.frame_transition_direction = -1
        self.last_transition_direction = -1

    def set_frames(self, frames: Sequence[FrameCallback]) -> None:
        """Replace the frames and start over at the first."""
        self.frames = list(frames)
        self.reset_state()

    def set_overlays(self, overlays: Sequence[OverlayCallback]) -> None:
        self.overlays = list(overlays)

    def run_loading_process(self, stages: Sequence[LoadingStage]) -> None:
        """Run each stage's callback while showing a progress screen."""
        stages = list(stages)
        if not stages:
            raise ValueError("a loading process needs at least one stage")
        progress = 0
        increment = 100 // len(stages)
        for stage in stages:
            self.display.clear()
            self.loading_draw_function(self.display, stage, progress)
            self.display.update_screen()
            stage.callback()
            progress += increment
        self.display.clear()
        self.loading_draw_function(self.display, stages[-1], progress)
        self.display.update_screen()
        self.sleep(_LOADING_PAUSE_S)

    def _start_manual_transition(self, direction: int) -> None:
        if self.state.frame_state != FrameState.IN_TRANSITION:
            self.state.manual_control = True
            self.state.frame_state = FrameState.IN_TRANSITION
            self.state.ticks_since_last_state_switch = 0
            self.last_transition_direction = self.state.frame_transition_direction
            self.state.frame_transition_direction = direction

    def next_frame(self) -> None:
        self._start_manual_transition(1)

    def previous_frame(self) -> None:
        self._start_manual_transition(-1)

    def switch_to_frame(self, frame: int) -> None:
        """Show ``frame`` at once, without animation."""
        if frame >= self.frame_count:
            return
        self.state.ticks_since_last_state_switch = 0
        if frame == self.state.current_frame:
            return
        self.state.frame_state = FrameState.FIXED
        self.state.current_frame = frame
        self.state.is_indicator_drawn = True

    def transition_to_frame(self, frame: int) -> None:
        """Slide to ``frame``."""
        if frame >= self.frame_count:
            return
        self.state.ticks_since_last_state_switch = 0
        if frame == self.state.current_frame:
            return
        self.next_frame_index = frame
        self.last_transition_direction = self.state.frame_transition_direction
        self.state.manual_control = True
        self.state.frame_state = FrameState.IN_TRANSITION
        self.state.frame_transition_direction = -1 if frame < self.state.current_frame else 1

    def update(self) -> int:
        """Tick if the update interval has passed; return milliseconds left in the budget."""
        frame_start = self.clock()
        time_budget = self.update_interval - (frame_start - self.state.last_update)
        if time_budget <= 0:
            if self.auto_transition and self.state.last_update != 0:
                self.state.ticks_since_last_state_switch += (-time_budget) // self.update_interval
            self.state.last_update = frame_start
            self.tick()
        return self.update_interval - (self.clock() - frame_start)

    def tick(self) -> None:
        """Advance the animation by one step and redraw the screen."""
        state = self.state
        state.ticks_since_last_state_switch += 1
        if state.frame_state == FrameState.IN_TRANSITION:
            if state.ticks_since_last_state_switch >= self.ticks_per_transition:
                state.frame_state = FrameState.FIXED
                state.current_frame = self.next_frame_number()
                state.ticks_since_last_state_switch = 0
                self.next_frame_index = -1
        else:
            if state.manual_control:
                state.frame_transition_direction = self.last_transition_direction
                state.manual_control = False
            if state.ticks_since_last_state_switch >= self.ticks_per_frame:
                if self.auto_transition:
                    state.frame_state = FrameState.IN_TRANSITION
                state.ticks_since_last_state_switch = 0

        self.display.clear()
        self.draw_frame()
        if self.should_draw_indicators:
            self.draw_indicator()
        self.draw_overlays()
        self.display.update_screen()

    def reset_state(self) -> None:
        self.state.last_update = 0
        self.state.ticks_since_last_state_switch = 0
        self.state.frame_state = FrameState.FIXED
        self.state.current_frame = 0
        self.state.is_indicator_drawn = True

    def draw_frame(self) -> None:
        """Draw the current frame, or both frames of a running transition."""
        if not self.frames:
            return
        state = self.state
        if state.frame_state == FrameState.IN_TRANSITION:
            progress = state.ticks_since_last_state_switch / self.ticks_per_transition
            x = y = x1 = y1 = 0
            direction = self.frame_animation_direction
            if direction == AnimationDirection.SLIDE_LEFT:
                x = int(-_SCREEN_WIDTH * progress)
                x1 = x + _SCREEN_WIDTH
            elif direction == AnimationDirection.SLIDE_RIGHT:
                x = int(_SCREEN_WIDTH * progress)
                x1 = x - _SCREEN_WIDTH
            elif direction == AnimationDirection.SLIDE_UP:
                y = int(-_SCREEN_HEIGHT * progress)
                y1 = y + _SCREEN_HEIGHT
            elif direction == AnimationDirection.SLIDE_DOWN:
                y = int(_SCREEN_HEIGHT * progress)
                y1 = y - _SCREEN_HEIGHT

            sign = 1 if state.frame_transition_direction >= 0 else -1
            x, y, x1, y1 = x * sign, y * sign, x1 * sign, y1 * sign

            state.is_indicator_drawn = True
            self.frames[state.current_frame](self.display, state, x, y)
            drawn_current = state.is_indicator_drawn

            state.is_indicator_drawn = True
            self.frames[self.next_frame_number()](self.display, state, x1, y1)
            drawn_next = state.is_indicator_drawn

            if drawn_current and not drawn_next:
                self.indicator_draw_state = 2
            elif not drawn_current and drawn_next:
                self.indicator_draw_state = 1
            elif not drawn_current and not drawn_next:
                self.indicator_draw_state = 3

            if not drawn_current:
                state.is_indicator_drawn = False
        else:
            self.indicator_draw_state = 0
            state.is_indicator_drawn = True
            self.frames[state.current_frame](self.display, state, 0, 0)

    def draw_indicator(self) -> None:
        """Draw one symbol per frame, highlighting the current one."""
        state = self.state
        if self.indicator_draw_state == 3 or (
            not state.is_indicator_drawn and state.frame_state != FrameState.IN_TRANSITION
        ):
            return
        if not self.frames:
            return

        if self.indicator_draw_state == 1:
            frame_to_highlight = self.next_frame_number()
        else:
            frame_to_highlight = state.current_frame

        if self.indicator_direction == IndicatorDirection.LEFT_RIGHT:
            highlight = frame_to_highlight
        else:
            highlight = self.frame_count - frame_to_highlight

        fade = 0.0
        if self.indicator_draw_state == 1:
            fade = 1 - state.ticks_since_last_state_switch / self.ticks_per_transition
        elif self.indicator_draw_state == 2:
            fade = state.ticks_since_last_state_switch / self.ticks_per_transition

        start = 12 * self.frame_count // 2
        self.display.color = Color.WHITE
        for index in range(self.frame_count):
            position = self.indicator_position
            if position == IndicatorPosition.TOP:
                y = int(0 - 8 * fade)
                x = 64 - start + 12 * index
            elif position == IndicatorPosition.BOTTOM:
                y = int(56 + 8 * fade)
                x = 64 - start + 12 * index
            elif position == IndicatorPosition.RIGHT:
                x = int(120 + 8 * fade)
                y = 32 - start + 2 + 12 * index
            else:
                x = int(0 - 8 * fade)
                y = 32 - start + 2 + 12 * index
            image = self.active_symbol if highlight == index else self.inactive_symbol
            self.display.draw_fast_image(x, y, 8, 8, image)

    def draw_overlays(self) -> None:
        for overlay in self.overlays:
            overlay(self.display, self.state)

    def next_frame_number(self) -> int:
        """Return the frame the current transition leads to."""
        if self.next_frame_index != -1:
            return self.next_frame_index
        if not self.frames:
            raise ValueError("no frames are set")
        return (self.state.current_frame + self.frame_count + self.state.frame_transition_direction) % self.frame_count