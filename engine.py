"""
Turn engine for the memory match game.

The engine owns every timer it needs (mismatch flip-back, power-up reveal,
round countdown) through a Scheduler. The host loop drives it by calling
MemoryGame.update() once per frame; nothing here sleeps or spawns threads.
"""
import heapq
import itertools
import time
from typing import Callable, List, Optional

from classes import Board, DIFFICULTIES, QuotaExceeded, SupplierFailure, get_difficulty
from shared.models import LOST, WON, RoundSummary

# Engine states
IDLE = "idle"
AWAITING_FIRST = "awaiting_first"
AWAITING_SECOND = "awaiting_second"
RESOLVING = "resolving"

# Listener events
CHANGED = "changed"
LOW_TIME = "low_time"
REVEAL = "reveal"
REVEAL_END = "reveal_end"


class ScheduledTask:
    """A callback waiting in the Scheduler queue."""

    def __init__(self, due, callback, name=""):
        self.due = due
        self.callback = callback
        self.name = name
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def __repr__(self):
        return f"ScheduledTask(name={self.name!r}, due={self.due}, cancelled={self.cancelled})"


class Scheduler:
    """
    A cooperative timer queue.

    Tasks fire from run_due() in due-time order, ties broken by the order they
    were scheduled. While a task runs, now() reports the task's due time so a
    repeating task can re-schedule itself without drifting.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            clock: Callable returning the current time in seconds
        """
        self.clock = clock
        self._queue = []
        self._counter = itertools.count()
        self._firing_at = None

    def now(self) -> float:
        if self._firing_at is not None:
            return self._firing_at
        return self.clock()

    def call_at(self, due, callback, name="") -> ScheduledTask:
        task = ScheduledTask(due, callback, name)
        heapq.heappush(self._queue, (due, next(self._counter), task))
        return task

    def call_later(self, delay, callback, name="") -> ScheduledTask:
        return self.call_at(self.now() + delay, callback, name)

    def cancel_all(self):
        """Cancel every pending task. Safe to call from inside a callback."""
        for _, _, task in self._queue:
            task.cancel()
        self._queue = []

    def pending(self) -> List[ScheduledTask]:
        """Return the tasks still waiting to fire, earliest first."""
        return [task for _, _, task in sorted(self._queue) if not task.cancelled]

    def run_due(self) -> int:
        """
        Fire every task whose due time has passed.

        Returns:
            Number of callbacks that ran
        """
        now = self.clock()
        fired = 0
        while self._queue and self._queue[0][0] <= now:
            due, _, task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            task.cancel()
            self._firing_at = due
            try:
                task.callback()
            finally:
                self._firing_at = None
            fired += 1
        return fired


class RoundClock:
    """Countdown with one-second granularity."""

    LOW_TIME_THRESHOLD = 10

    def __init__(self, scheduler, on_tick=None, on_low_time=None, on_expire=None):
        self.scheduler = scheduler
        self.on_tick = on_tick
        self.on_low_time = on_low_time
        self.on_expire = on_expire
        self.remaining = 0
        self.running = False
        self.low_time = False
        self._task: Optional[ScheduledTask] = None

    def start(self, duration_seconds):
        self.stop()
        self.remaining = duration_seconds
        self.low_time = False
        self.running = True
        self._schedule_next()

    def _schedule_next(self):
        self._task = self.scheduler.call_later(1.0, self.tick, name="clock-tick")

    def tick(self):
        """Count down one second; stop and report expiry at zero."""
        if not self.running:
            return
        self._task = None
        self.remaining = max(0, self.remaining - 1)

        if self.remaining <= self.LOW_TIME_THRESHOLD and not self.low_time:
            self.low_time = True
            if self.on_low_time:
                self.on_low_time()

        if self.on_tick:
            self.on_tick()
        if not self.running:
            return

        if self.remaining <= 0:
            self.stop()
            if self.on_expire:
                self.on_expire()
            return

        self._schedule_next()

    def stop(self):
        """Stop the countdown. Calling it again has no effect."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self.running = False


def quota_for(difficulty) -> int:
    """Return the power-up quota for a Difficulty or a difficulty name."""
    if isinstance(difficulty, str):
        difficulty = get_difficulty(difficulty)
    return difficulty.power_up_quota


class PowerUpLimiter:
    """
    Bounded-use "peek" action. Each use shows every unmatched card for a short
    time and then turns them all face down again.
    """

    def __init__(self, difficulty, scheduler, reveal_duration=1.5, on_reveal=None, on_reveal_end=None):
        self.difficulty = difficulty
        self.scheduler = scheduler
        self.reveal_duration = reveal_duration
        self.on_reveal = on_reveal
        self.on_reveal_end = on_reveal_end
        self.quota = quota_for(difficulty)
        self.used = 0
        self.active_reveals = 0

    @property
    def remaining(self):
        return self.quota - self.used

    @property
    def revealing(self):
        return self.active_reveals > 0

    def use(self, board):
        """
        Spend one power-up on the given board.

        Raises:
            QuotaExceeded: If every power-up for this round is already spent
        """
        if self.used >= self.quota:
            raise QuotaExceeded(self.quota, self.difficulty.name)
        self.used += 1
        self.active_reveals += 1

        for card in board.unmatched_cards():
            card.is_face_up = True
        self.scheduler.call_later(self.reveal_duration, lambda: self._end_reveal(board),
                                  name="reveal-end")
        if self.on_reveal:
            self.on_reveal()

    def _end_reveal(self, board):
        self.active_reveals -= 1
        for card in board.unmatched_cards():
            card.is_face_up = False
        if self.on_reveal_end:
            self.on_reveal_end()


class MemoryGame:
    """
    Turn controller for one player.

    At most two cards are face up at a time; a pair of equal tokens is matched
    on the spot, a mismatch locks the board until both cards turn back.
    """

    MISMATCH_DELAY = 1.0
    REVEAL_DURATION = 1.5

    def __init__(self, supplier, difficulties=None, clock=time.monotonic, rng=None):
        """
        Initialize the engine.

        Args:
            supplier: Callable taking a pair count and returning that many Tokens.
                It raises SupplierFailure when tokens cannot be fetched.
            difficulties: Mapping of level name to Difficulty (defaults to DIFFICULTIES)
            clock: Callable returning the current time in seconds
            rng: Optional random.Random used to shuffle boards
        """
        self.supplier = supplier
        self.difficulties = dict(difficulties or DIFFICULTIES)
        self.rng = rng
        self.scheduler = Scheduler(clock)
        self.round_clock = RoundClock(
            self.scheduler,
            on_tick=lambda: self._notify(CHANGED),
            on_low_time=lambda: self._notify(LOW_TIME),
            on_expire=self._time_up,
        )
        self._listeners = []
        self.difficulty = None
        self.board: Optional[Board] = None
        self.power_ups: Optional[PowerUpLimiter] = None
        self._clear_round()

    def _clear_round(self):
        self.board = None
        self.power_ups = None
        self._clicks = 0
        self._matched_pairs = 0
        self._total_pairs = 0
        self._locked = False
        self._first = None
        self._second = None
        self._outcome = None
        self._summary = None

    # --- Observers ---

    def add_listener(self, callback):
        """Register callback(event, game) for state changes and round outcomes."""
        self._listeners.append(callback)

    def remove_listener(self, callback):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self, event):
        for listener in list(self._listeners):
            listener(event, self)

    @property
    def clicks(self):
        return self._clicks

    @property
    def matched_pairs(self):
        return self._matched_pairs

    @property
    def total_pairs(self):
        return self._total_pairs

    @property
    def pairs_left(self):
        return self._total_pairs - self._matched_pairs

    @property
    def time_left(self):
        return self.round_clock.remaining

    @property
    def low_time(self):
        return self.round_clock.low_time

    @property
    def locked(self):
        return self._locked

    @property
    def pending_first(self):
        return self._first

    @property
    def pending_second(self):
        return self._second

    @property
    def outcome(self):
        return self._outcome

    @property
    def summary(self) -> Optional[RoundSummary]:
        return self._summary

    @property
    def active(self):
        return self.board is not None and self._outcome is None

    @property
    def power_ups_used(self):
        return self.power_ups.used if self.power_ups else 0

    @property
    def power_ups_left(self):
        return self.power_ups.remaining if self.power_ups else 0

    @property
    def revealing(self):
        return self.power_ups is not None and self.power_ups.revealing

    @property
    def state(self):
        if self._outcome is not None:
            return self._outcome
        if self.board is None:
            return IDLE
        if self._second is not None:
            return RESOLVING
        if self._first is not None:
            return AWAITING_SECOND
        return AWAITING_FIRST

    # --- Round lifecycle ---

    def start(self, difficulty):
        """
        Start a new round, replacing any round in progress.

        Args:
            difficulty: Level name ("easy", "medium", "hard")

        Raises:
            ValueError: If the level is unknown
            SupplierFailure: If tokens could not be fetched. The current state
                is left exactly as it was.
        """
        key = str(difficulty).lower()
        if key not in self.difficulties:
            raise ValueError(f"Unknown difficulty: {difficulty!r}")
        level = self.difficulties[key]

        tokens = list(self.supplier(level.pair_count))
        if not tokens:
            raise SupplierFailure("Token supplier returned no tokens")
        board = Board(tokens, rng=self.rng)

        self._stop_timers()
        self._clear_round()
        self.difficulty = level
        self.board = board
        self._total_pairs = board.pair_count
        self.power_ups = PowerUpLimiter(
            level, self.scheduler,
            reveal_duration=self.REVEAL_DURATION,
            on_reveal=lambda: self._notify(REVEAL),
            on_reveal_end=lambda: self._notify(REVEAL_END),
        )
        self.round_clock.start(level.time_limit)
        self._notify(CHANGED)

    def reset(self):
        """Drop the current round and cancel everything it had scheduled."""
        self._stop_timers()
        self._clear_round()
        self.round_clock.remaining = 0
        self.round_clock.low_time = False
        self._notify(CHANGED)

    def update(self):
        """
        Run scheduled work that has come due. Call this regularly from the
        game loop.

        Returns:
            Number of scheduled callbacks that ran
        """
        return self.scheduler.run_due()

    def _stop_timers(self):
        self.scheduler.cancel_all()
        self.round_clock.stop()

    def _time_up(self):
        if self._outcome is None:
            self._end_round(LOST)

    def _end_round(self, outcome):
        self._stop_timers()
        if self.power_ups is not None:
            self.power_ups.active_reveals = 0
        self._locked = True
        self._outcome = outcome
        self._summary = RoundSummary(
            difficulty=self.difficulty.name,
            outcome=outcome,
            clicks=self._clicks,
            matched_pairs=self._matched_pairs,
            total_pairs=self._total_pairs,
            time_left=self.round_clock.remaining,
            time_limit=self.difficulty.time_limit,
            power_ups_used=self.power_ups_used,
        )
        self._notify(outcome)

    # --- Player actions ---

    def flip(self, card_id):
        """
        Turn a card face up.

        Flips while the board is locked, outside a round, on an unknown or
        matched card, or on the card already waiting for its partner are
        ignored.

        Args:
            card_id: ID of the card to flip

        Returns:
            True if the flip was accepted, False if it was ignored
        """
        self.scheduler.run_due()
        if self._locked or not self.active:
            return False
        card = self.board.get_card(card_id)
        if card is None or card is self._first or card.is_matched:
            return False

        card.is_face_up = True
        self._clicks += 1

        if self._first is None:
            self._first = card
            self._notify(CHANGED)
            return True

        self._second = card
        matched = self._check_match()
        self._notify(CHANGED)
        if matched and self._matched_pairs == self._total_pairs:
            self._end_round(WON)
        return True

    def _check_match(self):
        first, second = self._first, self._second
        if first.matches(second):
            first.is_matched = True
            second.is_matched = True
            self._matched_pairs += 1
            self._first = self._second = None
            return True

        self._locked = True
        self.scheduler.call_later(self.MISMATCH_DELAY, self._flip_back, name="flip-back")
        return False

    def _flip_back(self):
        for card in (self._first, self._second):
            if card is not None and not card.is_matched:
                card.is_face_up = False
        self._first = self._second = None
        self._locked = False
        self._notify(CHANGED)

    def use_power_up(self):
        """
        Briefly reveal every unmatched card. Does not count as a click and
        leaves the pending cards alone.

        Returns:
            True if a reveal started, False if no round is running

        Raises:
            QuotaExceeded: If this round's power-ups are used up
        """
        self.scheduler.run_due()
        if not self.active:
            return False
        self.power_ups.use(self.board)
        return True
