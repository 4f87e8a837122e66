"""
Tests for the drawing-side round controller.
"""

import threading
import time

import pytest

from ai_pictionary.client.game import RoundController, RoundPhase, RoundTimer, deadline_for, format_clock
from ai_pictionary.shared import protocols
from ai_pictionary.shared.protocols import Message
from ai_pictionary.shared.verdict import Verdict

MISS = Verdict("dog", "Looks like a dog")
HIT = Verdict("cat", "Purrfect")


@pytest.fixture
def notes():
    return []


@pytest.fixture
def controller(outbox, notes):
    return RoundController(send=outbox, capture=lambda: "aW1n", notify=notes.append, timer_factory=None)


def _started(controller, prompt="Draw a cat"):
    controller.handle_prompt(prompt)
    return controller


def _game_ends(outbox):
    return [m.body for m in outbox.of_type(protocols.GAMEEND)]


def test_deadlines():
    assert deadline_for(0) == 60
    assert [deadline_for(i) for i in range(1, 5)] == [15, 15, 15, 15]


def test_format_clock():
    assert format_clock(60) == "01:00"
    assert format_clock(9) == "00:09"
    assert format_clock(-3) == "00:00"


def test_initial_state(controller):
    assert controller.phase == RoundPhase.IDLE
    assert not controller.can_submit
    assert not controller.can_start_new_game
    assert controller.round_label == "Round: -"
    assert controller.submit() is False


def test_prompt_starts_first_round(controller, outbox):
    _started(controller, "Draw an elephant")
    assert controller.phase == RoundPhase.ROUND_ACTIVE
    assert controller.target == "elephant"
    assert controller.round_index == 0
    assert controller.is_first_round
    assert controller.remaining_seconds == 60
    assert controller.round_label == "Round: 1/5"
    assert controller.clock == "01:00"
    # 第一次收到提示时没有上一局可以上报
    assert outbox.messages == []


def test_submit_sends_drawing_and_closes_gate(controller, outbox):
    _started(controller)
    assert controller.submit() is True
    assert outbox.lines() == ["DRAWING:aW1n"]
    assert controller.phase == RoundPhase.JUDGING
    assert controller.submit() is False
    assert len(outbox.of_type(protocols.DRAWING)) == 1


def test_miss_advances_round_with_short_deadline(controller):
    _started(controller)
    controller.submit()
    controller.handle_result(MISS, False)
    assert controller.phase == RoundPhase.ROUND_ACTIVE
    assert controller.round_index == 1
    assert not controller.is_first_round
    assert controller.remaining_seconds == 15


def test_five_misses_exhaust_game_and_report_loss_once(controller, outbox):
    _started(controller)
    for _ in range(5):
        assert controller.submit() is True
        controller.handle_result(MISS, False)
    assert controller.phase == RoundPhase.EXHAUSTED
    assert controller.round_index == 4
    assert len(outbox.of_type(protocols.DRAWING)) == 5
    assert _game_ends(outbox) == ["0"]
    assert controller.submit() is False

    assert controller.request_new_game() is True
    assert _game_ends(outbox) == ["0"]
    assert outbox.lines()[-1] == "NEWGAME"


def test_win_pauses_until_new_game(controller, outbox):
    _started(controller)
    controller.submit()
    controller.handle_result(HIT, True)
    assert controller.phase == RoundPhase.WON_PAUSED
    assert controller.game_won
    assert not controller.can_submit
    assert _game_ends(outbox) == []

    controller.request_new_game()
    assert outbox.lines()[-2:] == ["GAMEEND:1", "NEWGAME"]
    assert controller.phase == RoundPhase.IDLE


def test_win_on_last_round_is_not_a_loss(controller, outbox):
    _started(controller)
    for _ in range(4):
        controller.submit()
        controller.handle_result(MISS, False)
    controller.submit()
    controller.handle_result(HIT, True)
    assert controller.phase == RoundPhase.WON_PAUSED
    controller.request_new_game()
    assert _game_ends(outbox) == ["1"]


def test_win_flag_mirrors_server(controller):
    _started(controller)
    controller.submit()
    # 识别出的物体与目标一致，但服务器说没赢，以服务器为准
    controller.handle_result(HIT, False)
    assert controller.game_won is False
    assert controller.phase == RoundPhase.ROUND_ACTIVE


def test_new_game_mid_round_reports_loss(controller, outbox):
    _started(controller)
    controller.submit()
    controller.handle_result(MISS, False)
    controller.request_new_game()
    assert outbox.lines()[-2:] == ["GAMEEND:0", "NEWGAME"]


def test_result_while_waiting_for_prompt_is_ignored(controller, outbox):
    _started(controller)
    controller.submit()
    controller.request_new_game()
    controller.handle_result(HIT, True)
    assert controller.phase == RoundPhase.IDLE
    assert controller.game_won is False


def test_result_outside_judging_is_ignored(controller):
    _started(controller)
    controller.handle_result(HIT, True)
    assert controller.phase == RoundPhase.ROUND_ACTIVE
    assert controller.game_won is False


def test_new_prompt_mid_game_finalizes_previous(controller, outbox):
    _started(controller)
    controller.handle_prompt("Draw an owl")
    assert _game_ends(outbox) == ["0"]
    assert controller.target == "owl"
    assert controller.remaining_seconds == 60


def test_prompt_after_new_game_does_not_report_twice(controller, outbox):
    _started(controller)
    controller.request_new_game()
    controller.handle_prompt("Draw a dog")
    assert _game_ends(outbox) == ["0"]


def test_tick_counts_down_and_auto_submits(controller, outbox, notes):
    _started(controller)
    for _ in range(59):
        controller.tick()
    assert controller.remaining_seconds == 1
    assert outbox.messages == []
    controller.tick()
    assert outbox.lines() == ["DRAWING:aW1n"]
    assert controller.phase == RoundPhase.JUDGING
    assert any("Auto-submitted" in n for n in notes)
    controller.tick()
    assert len(outbox.messages) == 1


def test_tick_and_manual_submit_race_sends_once(outbox):
    for _ in range(20):
        outbox.messages.clear()
        c = RoundController(send=outbox, capture=lambda: "x", timer_factory=None)
        c.handle_prompt("Draw a cat")
        c.remaining_seconds = 1
        start = threading.Barrier(2)

        def tick():
            start.wait()
            c.tick()

        def press():
            start.wait()
            c.submit()

        threads = [threading.Thread(target=tick), threading.Thread(target=press)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(5)
        assert len(outbox.of_type(protocols.DRAWING)) == 1


def test_capture_failure_submits_blank(outbox, notes):
    c = RoundController(send=outbox, capture=lambda: None, notify=notes.append, timer_factory=None)
    c.handle_prompt("Draw a cat")
    assert c.submit() is True
    assert outbox.lines() == ["DRAWING:"]
    assert any("blank" in n for n in notes)


def test_capture_exception_submits_blank(outbox):
    def broken():
        raise RuntimeError("no surface")

    c = RoundController(send=outbox, capture=broken, timer_factory=None)
    c.handle_prompt("Draw a cat")
    assert c.submit() is True
    assert outbox.lines() == ["DRAWING:"]


def test_handle_message_routes_wire_messages(controller):
    controller.handle_message(Message(protocols.STATS, "Games: 3 | Score: 2"))
    assert (controller.games_played, controller.total_score) == (3, 2)
    controller.handle_message(Message(protocols.PROMPT, "Draw a cat"))
    controller.submit()
    controller.handle_message(Message(protocols.RESULT, '{"object":"cat","comment":"yes"}|WON:true'))
    assert controller.phase == RoundPhase.WON_PAUSED


def test_stats_label_follows_server_stats(controller):
    assert controller.stats_label == "Games: 0 | Score: 0"
    controller.handle_message(Message(protocols.STATS, "Games: 4 | Score: 3"))
    assert controller.stats_label == "Games: 4 | Score: 3"


def test_bad_stats_message_keeps_previous(controller):
    controller.handle_message(Message(protocols.STATS, "Games: 1 | Score: 1"))
    controller.handle_message(Message(protocols.STATS, "garbage"))
    assert (controller.games_played, controller.total_score) == (1, 1)


def test_unknown_message_is_shown(controller, notes):
    controller.handle_message(Message(protocols.UNKNOWN, "hello"))
    assert notes[-1] == "Server: hello"


def test_disconnect_returns_to_idle(controller, outbox):
    _started(controller)
    controller.handle_disconnect()
    assert controller.phase == RoundPhase.IDLE
    assert not controller.can_start_new_game
    assert controller.request_new_game() is False
    controller.handle_prompt("Draw a dog")
    assert _game_ends(outbox) == []


class RecordingTicker:
    def __init__(self):
        self.starts = 0
        self.stops = 0
        self.generations = []

    def start(self, generation):
        self.starts += 1
        self.generations.append(generation)

    def stop(self):
        self.stops += 1


def test_timer_restarts_each_round_and_stops_on_submit(outbox):
    ticker = RecordingTicker()
    c = RoundController(send=outbox, capture=lambda: "x", timer_factory=lambda _tick: ticker)
    c.handle_prompt("Draw a cat")
    assert ticker.starts == 1
    c.submit()
    assert ticker.stops >= 1
    c.handle_result(MISS, False)
    assert ticker.starts == 2


def test_round_timer_ticks_until_stopped():
    ticks = []
    timer = RoundTimer(ticks.append, interval=0.01)
    timer.start(7)
    deadline = time.monotonic() + 5
    while len(ticks) < 3 and time.monotonic() < deadline:
        time.sleep(0.01)
    assert timer.active
    timer.stop()
    assert not timer.active
    assert len(ticks) >= 3
    assert set(ticks) == {7}


def test_tick_left_over_from_previous_round_is_dropped(outbox):
    ticker = RecordingTicker()
    c = RoundController(send=outbox, capture=lambda: "x", timer_factory=lambda _tick: ticker)
    c.handle_prompt("Draw a cat")
    first = ticker.generations[-1]
    c.submit()
    c.handle_result(MISS, False)
    second = ticker.generations[-1]
    assert second != first

    c.tick(first)
    assert c.remaining_seconds == 15
    c.tick(second)
    assert c.remaining_seconds == 14


def test_tick_from_previous_game_is_dropped(outbox):
    ticker = RecordingTicker()
    c = RoundController(send=outbox, capture=lambda: "x", timer_factory=lambda _tick: ticker)
    c.handle_prompt("Draw a cat")
    old = ticker.generations[-1]
    c.handle_prompt("Draw a dog")
    c.tick(old)
    assert c.remaining_seconds == 60


def test_round_timer_passes_generation_to_controller(outbox):
    c = RoundController(
        send=outbox,
        capture=lambda: "x",
        timer_factory=lambda on_tick: RoundTimer(on_tick, interval=0.01),
    )
    c.handle_prompt("Draw a cat")
    deadline = time.monotonic() + 5
    while c.remaining_seconds > 55 and time.monotonic() < deadline:
        time.sleep(0.01)
    ticked = c.remaining_seconds
    c.handle_disconnect()
    assert ticked <= 55
