"""
Unit tests for the pomodoro Timer state machine.

Time is driven by the FakeClock fixture, so nothing here sleeps.
"""

from __future__ import annotations

from datetime import datetime

import pytest

from pomotimer.actions.pomodoro import (
    IDLE_STATUS,
    Mode,
    Timer,
    format_remaining,
    parse_minutes,
)
from pomotimer.notes.pomo_log import CHECKLIST_MARKER


async def _finish(timer, clock):
    """Run the clock to the end of the current interval and refresh."""
    clock.advance(timer.remaining_seconds())
    return await timer.status_bar_text()


# ── Formatting helpers ──────────────────────────────────────────────────────

class TestFormatRemaining:
    def test_minutes_and_seconds(self):
        assert format_remaining(25 * 60) == "25:00"
        assert format_remaining(299) == "04:59"

    def test_partial_seconds_round_up(self):
        assert format_remaining(59.2) == "01:00"

    def test_zero_and_negative_render_as_zero(self):
        assert format_remaining(0) == "00:00"
        assert format_remaining(-12.5) == "00:00"

    def test_hours_are_prefixed(self):
        assert format_remaining(3600) == "1:00:00"
        assert format_remaining(3725) == "1:02:05"


class TestParseMinutes:
    @pytest.mark.parametrize("value,expected", [
        (5, 5.0),
        (2.5, 2.5),
        ("7", 7.0),
        (" 12.5 ", 12.5),
    ])
    def test_numeric_input(self, value, expected):
        assert parse_minutes(value) == expected

    @pytest.mark.parametrize("value", ["abc", "", None, True, float("nan"), float("inf"), [5]])
    def test_non_numeric_input(self, value):
        assert parse_minutes(value) is None


# ── Idle state ──────────────────────────────────────────────────────────────

class TestIdle:
    async def test_new_timer_is_idle(self, timer):
        assert timer.mode == Mode.NO_TIMER
        assert await timer.status_bar_text() == IDLE_STATUS

    def test_toggle_pause_is_noop_when_idle(self, timer):
        assert timer.toggle_pause() is False
        assert timer.paused is False
        assert timer.mode == Mode.NO_TIMER

    async def test_running_timer_never_shows_idle_text(self, timer, clock):
        for mode in (Mode.POMO, Mode.SHORT_BREAK, Mode.LONG_BREAK):
            timer.start_timer(mode)
            assert await timer.status_bar_text() != IDLE_STATUS
        timer.toggle_pause()
        assert await timer.status_bar_text() != IDLE_STATUS

    def test_idle_remaining_is_zero(self, timer):
        assert timer.remaining_seconds() == 0.0


# ── Starting ────────────────────────────────────────────────────────────────

class TestStartTimer:
    async def test_start_pomo_uses_configured_length(self, timer):
        snap = timer.start_timer(Mode.POMO)
        assert snap.mode == Mode.POMO
        assert snap.duration_seconds == 25 * 60
        assert snap.remaining_seconds == 25 * 60
        assert await timer.status_bar_text() == "Pomo 25:00"

    async def test_break_labels(self, timer, settings):
        timer.start_timer(Mode.SHORT_BREAK)
        assert await timer.status_bar_text() == "Short break 05:00"
        timer.start_timer(Mode.LONG_BREAK)
        assert await timer.status_bar_text() == "Long break 15:00"

    def test_mode_accepts_string_value(self, timer):
        timer.start_timer("short_break")
        assert timer.mode == Mode.SHORT_BREAK

    def test_start_replaces_running_interval(self, timer, clock):
        timer.start_timer(Mode.POMO)
        clock.advance(600)
        timer.toggle_pause()
        snap = timer.start_timer(Mode.SHORT_BREAK)
        assert snap.mode == Mode.SHORT_BREAK
        assert snap.paused is False
        assert snap.remaining_seconds == 300

    def test_start_no_timer_quits(self, timer):
        timer.start_timer(Mode.POMO)
        timer.start_timer(Mode.NO_TIMER)
        assert timer.mode == Mode.NO_TIMER

    def test_settings_changes_apply_to_next_interval(self, timer, settings):
        settings["pomo"] = 50
        assert timer.start_timer(Mode.POMO).duration_seconds == 50 * 60


# ── Remaining time ──────────────────────────────────────────────────────────

class TestRemainingTime:
    def test_remaining_is_non_increasing_and_never_negative(self, timer, clock):
        timer.start_timer(Mode.POMO)
        previous = timer.remaining_seconds()
        for step in (0.5, 1, 30, 120, 0.25, 900, 600, 300):
            clock.advance(step)
            current = timer.remaining_seconds()
            assert current <= previous
            assert current >= 0.0
            previous = current

    async def test_status_counts_down(self, timer, clock):
        timer.start_timer(Mode.POMO)
        clock.advance(1)
        assert await timer.status_bar_text() == "Pomo 24:59"
        clock.advance(60)
        assert await timer.status_bar_text() == "Pomo 23:59"

    async def test_skipped_ticks_do_not_drift(self, timer, clock):
        timer.start_timer(Mode.POMO)
        clock.advance(10 * 60)       # no refresh for ten minutes
        assert await timer.status_bar_text() == "Pomo 15:00"


# ── Pause / resume ──────────────────────────────────────────────────────────

class TestPause:
    def test_pause_then_resume_conserves_remaining(self, timer, clock):
        timer.start_timer(Mode.POMO)
        clock.advance(100)
        before = timer.remaining_seconds()
        assert timer.toggle_pause() is True
        assert timer.toggle_pause() is True
        assert timer.remaining_seconds() == pytest.approx(before)

    async def test_paused_timer_is_frozen(self, timer, clock):
        timer.start_timer(Mode.POMO)
        clock.advance(60)
        timer.toggle_pause()
        clock.advance(3600)
        assert timer.remaining_seconds() == pytest.approx(24 * 60)
        assert await timer.status_bar_text() == "Pomo 24:00 (paused)"
        assert timer.mode == Mode.POMO

    def test_elapsed_accumulates_across_pauses(self, timer, clock):
        timer.start_timer(Mode.POMO)
        for _ in range(3):
            clock.advance(60)
            timer.toggle_pause()
            clock.advance(500)
            timer.toggle_pause()
        assert timer.snapshot().elapsed_seconds == pytest.approx(180)
        assert timer.remaining_seconds() == pytest.approx(25 * 60 - 180)


# ── Quit / ribbon ───────────────────────────────────────────────────────────

class TestQuit:
    def test_quit_from_idle(self, timer):
        assert timer.quit_timer().mode == Mode.NO_TIMER

    def test_quit_is_idempotent(self, timer, clock):
        timer.start_timer(Mode.POMO)
        clock.advance(30)
        for _ in range(3):
            timer.quit_timer()
            assert timer.mode == Mode.NO_TIMER
            assert timer.paused is False

    def test_quit_while_paused(self, timer):
        timer.start_timer(Mode.LONG_BREAK)
        timer.toggle_pause()
        timer.quit_timer()
        assert timer.mode == Mode.NO_TIMER
        assert timer.paused is False

    async def test_quit_keeps_cycle_count(self, timer, clock):
        timer.start_timer(Mode.POMO)
        await _finish(timer, clock)
        timer.quit_timer()
        assert timer.cycle_count == 1

    def test_ribbon_click_toggles(self, timer):
        assert timer.on_ribbon_icon_click().mode == Mode.POMO
        assert timer.on_ribbon_icon_click().mode == Mode.NO_TIMER


# ── Completion / cycle ──────────────────────────────────────────────────────

class TestCycle:
    async def test_four_pomos_yield_three_short_and_one_long_break(self, timer, clock):
        timer.start_timer(Mode.POMO)
        breaks = []
        for _ in range(4):
            assert timer.mode == Mode.POMO
            clock.advance(25 * 60)
            await timer.status_bar_text()
            breaks.append(timer.mode)
            await _finish(timer, clock)
        assert breaks == [
            Mode.SHORT_BREAK,
            Mode.SHORT_BREAK,
            Mode.SHORT_BREAK,
            Mode.LONG_BREAK,
        ]
        assert timer.cycle_count == 4
        assert timer.mode == Mode.POMO

    async def test_break_lengths_follow_settings(self, timer, clock, settings):
        settings["long_break_interval"] = 2
        timer.start_timer(Mode.POMO)
        await _finish(timer, clock)
        assert timer.snapshot().duration_seconds == 5 * 60
        await _finish(timer, clock)
        await _finish(timer, clock)
        assert timer.mode == Mode.LONG_BREAK
        assert timer.snapshot().duration_seconds == 15 * 60

    async def test_status_after_completion_shows_next_interval(self, timer, clock):
        timer.start_timer(Mode.POMO)
        clock.advance(25 * 60 + 3)
        assert await timer.status_bar_text() == "Short break 05:00"

    async def test_completed_break_does_not_count_as_cycle(self, timer, clock):
        timer.start_timer(Mode.SHORT_BREAK)
        await _finish(timer, clock)
        assert timer.mode == Mode.POMO
        assert timer.cycle_count == 0

    async def test_autostop_after_one_cycle(self, timer, clock, settings):
        settings["autostart_timer"] = False
        settings["num_auto_cycles"] = 1
        timer.start_timer(Mode.POMO)
        await _finish(timer, clock)
        assert timer.mode == Mode.SHORT_BREAK
        assert await _finish(timer, clock) == IDLE_STATUS
        assert timer.mode == Mode.NO_TIMER

    async def test_autostop_with_zero_cycles_stops_after_pomo(self, timer, clock, settings):
        settings["autostart_timer"] = False
        settings["num_auto_cycles"] = 0
        timer.start_timer(Mode.POMO)
        await _finish(timer, clock)
        assert timer.mode == Mode.NO_TIMER
        assert timer.cycle_count == 1

    async def test_autostop_counter_resets_on_manual_start(self, timer, clock, settings):
        settings["autostart_timer"] = False
        settings["num_auto_cycles"] = 1
        timer.start_timer(Mode.SHORT_BREAK)
        await _finish(timer, clock)
        assert timer.mode == Mode.NO_TIMER
        timer.start_timer(Mode.POMO)
        await _finish(timer, clock)
        assert timer.mode == Mode.SHORT_BREAK


# ── Custom timer ────────────────────────────────────────────────────────────

class TestCustomTimer:
    async def test_one_minute_custom_timer(self, timer, clock):
        result = timer.start_custom_timer(1)
        assert result.started is True
        assert result.degraded is False
        assert 0 < timer.remaining_seconds() <= 60
        assert await timer.status_bar_text() == "Pomo 01:00"

        clock.advance(61)
        await timer.status_bar_text()
        assert timer.cycle_count == 1
        assert timer.mode == Mode.SHORT_BREAK

    def test_numeric_string_is_accepted(self, timer):
        result = timer.start_custom_timer("7.5")
        assert result.duration_minutes == 7.5
        assert timer.snapshot().duration_seconds == 450

    @pytest.mark.parametrize("bad", ["abc", "", None, 0, -5, float("nan"), 100_000])
    def test_invalid_input_falls_back_to_default(self, timer, bad):
        result = timer.start_custom_timer(bad)
        assert result.started is True
        assert result.degraded is True
        assert "default" in result.warning
        assert result.duration_minutes == 25
        assert timer.mode == Mode.POMO
        assert timer.snapshot().duration_seconds == 25 * 60

    def test_ignore_fallback_leaves_timer_unchanged(self, timer, settings, clock):
        settings["custom_timer_fallback"] = "ignore"
        timer.start_timer(Mode.SHORT_BREAK)
        clock.advance(30)
        result = timer.start_custom_timer("ten")
        assert result.started is False
        assert result.degraded is True
        assert timer.mode == Mode.SHORT_BREAK
        assert timer.remaining_seconds() == pytest.approx(270)

    def test_ignore_fallback_from_idle(self, timer, settings):
        settings["custom_timer_fallback"] = "ignore"
        timer.start_custom_timer(-1)
        assert timer.mode == Mode.NO_TIMER


# ── Logging on completion ───────────────────────────────────────────────────

class TestCompletionLogging:
    async def test_completed_pomo_writes_one_line(self, timer, clock, settings, vault):
        settings["logging"] = True
        timer.start_timer(Mode.POMO)
        clock.advance(25 * 60)
        expected = datetime.fromtimestamp(clock.now).strftime(settings["log_text"])
        await timer.status_bar_text()

        lines = (vault / "Pomodoro Log.md").read_text(encoding="utf-8").splitlines()
        assert lines == [expected]
        assert timer.last_log.written is True
        assert timer.last_log.target == "Pomodoro Log.md"

    async def test_breaks_are_not_logged(self, timer, clock, settings, vault):
        settings["logging"] = True
        timer.start_timer(Mode.POMO)
        await _finish(timer, clock)
        await _finish(timer, clock)
        assert timer.mode == Mode.POMO
        assert len((vault / "Pomodoro Log.md").read_text().splitlines()) == 1

    async def test_log_grows_in_order(self, timer, clock, settings, vault):
        settings["logging"] = True
        settings["log_text"] = "pomo %Y-%m-%d %H:%M:%S"
        timer.start_timer(Mode.POMO)
        for _ in range(3):
            await _finish(timer, clock)      # pomo
            await _finish(timer, clock)      # break
        lines = (vault / "Pomodoro Log.md").read_text().splitlines()
        assert len(lines) == 3
        assert lines == sorted(lines)

    async def test_logging_disabled_writes_nothing(self, timer, clock, vault):
        timer.start_timer(Mode.POMO)
        await _finish(timer, clock)
        assert not (vault / "Pomodoro Log.md").exists()
        assert timer.last_log.written is False
        assert timer.last_log.degraded is False

    async def test_log_to_daily_note(self, timer, clock, settings, vault):
        settings.update(logging=True, log_to_daily=True, daily_folder="Daily")
        timer.start_timer(Mode.POMO)
        clock.advance(25 * 60)
        day = datetime.fromtimestamp(clock.now).strftime("%Y-%m-%d")
        await timer.status_bar_text()
        note = vault / "Daily" / f"{day}.md"
        assert note.exists()
        assert len(note.read_text().splitlines()) == 1

    async def test_active_note_is_linked(self, timer, clock, settings, vault):
        settings.update(logging=True, log_active_note=True)
        timer.start_timer(Mode.POMO, active_note="Projects/Essay.md")
        await _finish(timer, clock)
        line = (vault / "Pomodoro Log.md").read_text().strip()
        assert line.endswith("[[Projects/Essay]]")

    async def test_log_failure_does_not_stop_the_cycle(self, timer, clock, settings, vault):
        settings.update(logging=True, log_file="../outside.md")
        timer.start_timer(Mode.POMO)
        await _finish(timer, clock)
        assert timer.mode == Mode.SHORT_BREAK
        assert timer.cycle_count == 1
        assert timer.last_log.written is False
        assert timer.last_log.degraded is True
        assert not (vault.parent / "outside.md").exists()

    async def test_folder_in_the_way_is_recovered(self, timer, clock, settings, vault):
        settings["logging"] = True
        (vault / "Pomodoro Log.md").mkdir()
        timer.start_timer(Mode.POMO)
        await _finish(timer, clock)
        assert timer.mode == Mode.SHORT_BREAK
        assert timer.last_log.degraded is True


class _ExplodingLog:
    async def write_async(self, *args, **kwargs):
        raise RuntimeError("disk on fire")


class TestStatusNeverRaises:
    async def test_unexpected_error_returns_text(self, settings, clock):
        timer = Timer(_ExplodingLog(), settings_source=lambda: settings, clock=clock)
        timer.start_timer(Mode.POMO)
        clock.advance(25 * 60)
        assert isinstance(await timer.status_bar_text(), str)


# ── Checklist file hook ─────────────────────────────────────────────────────

class TestFileModify:
    async def test_no_checklist_configured_is_ignored(self, timer):
        timer.start_timer(Mode.POMO)
        outcome = await timer.on_file_modify("Checklist.md")
        assert outcome.matched is False
        assert outcome.action == "ignored"

    async def test_other_file_is_ignored(self, timer, settings):
        settings["checklist_file"] = "Checklist.md"
        timer.start_timer(Mode.POMO)
        outcome = await timer.on_file_modify("Journal.md")
        assert outcome.matched is False

    @pytest.mark.parametrize("path", ["Checklist.md", "Checklist", "./Checklist.md", "/Checklist.md"])
    async def test_checklist_path_forms_match(self, timer, settings, path):
        settings["checklist_file"] = "Checklist.md"
        timer.start_timer(Mode.POMO)
        outcome = await timer.on_file_modify(path)
        assert outcome.matched is True
        assert outcome.action == "noted"

    async def test_idle_timer_ignores_checklist(self, timer, settings):
        settings["checklist_file"] = "Checklist.md"
        outcome = await timer.on_file_modify("Checklist.md")
        assert outcome.matched is True
        assert outcome.action == "ignored"
        assert timer.mode == Mode.NO_TIMER

    async def test_break_and_pause_ignore_checklist(self, timer, settings):
        settings.update(checklist_file="Checklist.md", checklist_action="complete")
        timer.start_timer(Mode.SHORT_BREAK)
        assert (await timer.on_file_modify("Checklist.md")).action == "ignored"
        timer.start_timer(Mode.POMO)
        timer.toggle_pause()
        assert (await timer.on_file_modify("Checklist.md")).action == "ignored"
        assert timer.mode == Mode.POMO

    async def test_log_action_appends_marker_line(self, timer, settings, vault):
        settings.update(logging=True, checklist_file="Checklist.md", checklist_action="log")
        timer.start_timer(Mode.POMO)
        outcome = await timer.on_file_modify("Checklist.md")
        assert outcome.action == "logged"
        assert outcome.log.written is True
        line = (vault / "Pomodoro Log.md").read_text().strip()
        assert line.endswith(CHECKLIST_MARKER)
        assert timer.mode == Mode.POMO

    async def test_complete_action_finishes_the_pomodoro(self, timer, settings, clock):
        settings.update(checklist_file="Checklist.md", checklist_action="complete")
        timer.start_timer(Mode.POMO)
        clock.advance(60)
        outcome = await timer.on_file_modify("Checklist.md")
        assert outcome.action == "completed"
        assert timer.cycle_count == 1
        assert timer.mode == Mode.SHORT_BREAK
