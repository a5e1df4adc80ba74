"""
Piecewise time-validity map for mission data.

Many quantities in a GNC system are constant over a period and then switch:
the drag model changes when the spacecraft reconfigures its solar arrays, an
estimated empirical acceleration gets a new value for every orbit arc, a
frame-offset model is replaced when new Earth orientation data are published.
:class:`ValidityMap` stores such a schedule.  It partitions the whole
timeline, from ``PAST_INFINITY`` to ``FUTURE_INFINITY``, into contiguous
half-open spans ``[start, end)``, each holding one value.

Structures
----------
ValidityMap     -- Owner of the partition; lookup, insertion, extraction.
Span            -- Read-only view of one span (value + boundaries).
Transition      -- Boundary between two adjacent spans.
ExpungePolicy   -- Which span to drop when a bounded map grows too large.

Memory layout
-------------
The map keeps three parallel Python lists:

* ``_dates``       -- ``float`` transition dates, strictly increasing
* ``_transitions`` -- :class:`Transition` records, same order
* ``_values``      -- span values, ``len(_dates) + 1`` entries

Span ``i`` covers ``[_dates[i - 1], _dates[i])`` with the missing ends taken
as the infinite sentinels, so ``spans == transitions + 1`` holds by
construction and point lookup is a single :func:`bisect.bisect_right`.

Views
-----
:class:`Span` objects are ``(map, index, generation)`` handles.  Every
mutation bumps the map generation, and touching a span obtained before the
mutation raises :class:`StaleViewError`.  :class:`Transition` records stay
valid for as long as they belong to the map; a transition removed by an
erasing operation is detached and raises :class:`StaleViewError` on use.

Time complexity
---------------
+----------------------+----------+
| Operation            | Cost     |
+======================+==========+
| get / get_span       | O(log n) |
| add_valid_after      | O(n)     |
| add_valid_before     | O(n)     |
| add_valid_between    | O(n)     |
| extract_range        | O(n)     |
| sample (k instants)  | O(n + k log n) |
+----------------------+----------+

No internal locking: concurrent readers are safe only while no writer runs.
"""

from __future__ import annotations

import logging
import math
import numbers
from bisect import bisect_left, bisect_right
from enum import Enum, auto
from typing import Any, Callable, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar, Union

import numpy as np

from core.constants import (
    DEFAULT_MAX_RANGE,
    DEFAULT_MAX_SPANS,
    FUTURE_INFINITY,
    PAST_INFINITY,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class StaleViewError(RuntimeError):
    """A span or transition view was used after the map changed under it."""


class ExpungedSpanError(LookupError):
    """Lookup of an instant whose span was expunged from a bounded map."""

    def __init__(self, instant: float) -> None:
        super().__init__(f"span containing t={instant} has been expunged")
        self.instant = instant


class NoValueError(LookupError):
    """Every span of the map holds ``None``."""


class TransitionCollisionError(ValueError):
    """Moving a transition would cross one of its neighbours."""

    def __init__(self, date: float, new_date: float, colliding_date: float) -> None:
        super().__init__(
            f"cannot move transition from t={date} to t={new_date}: "
            f"collision with transition at t={colliding_date}"
        )
        self.date = date
        self.new_date = new_date
        self.colliding_date = colliding_date


# ---------------------------------------------------------------------------
# Expunge configuration
# ---------------------------------------------------------------------------

class ExpungePolicy(Enum):
    """Which extreme span to drop when a bounded map exceeds its limits."""
    EARLIEST = auto()
    LATEST = auto()
    FARTHEST = auto()


class _Expunged:
    """Marker stored in place of the value of an expunged time range."""

    def __repr__(self) -> str:
        return "<expunged>"


_EXPUNGED = _Expunged()


def validate_expunge_limits(
    max_spans: int,
    max_range: float,
    policy: Union[ExpungePolicy, str],
) -> Tuple[int, float, ExpungePolicy]:
    """Check and normalise expunge limits.

    Parameters
    ----------
    max_spans : int
        Maximum number of spans retained, at least 1.
    max_range : float
        Maximum range in seconds between the end of the first span and the
        start of the last one.  ``inf`` disables the range limit.
    policy : ExpungePolicy or str
        Policy member or its name (case-insensitive).

    Returns
    -------
    tuple
        ``(max_spans, max_range, policy)`` with ``policy`` as a member.

    Raises
    ------
    ValueError
        On a non-positive span count, a negative or NaN range, or an
        unknown policy name.
    """
    if isinstance(max_spans, bool) or not isinstance(max_spans, (int, np.integer)) or max_spans < 1:
        raise ValueError(f"max_spans must be a positive integer, got {max_spans}")
    max_range = float(max_range)
    if math.isnan(max_range) or max_range < 0.0:
        raise ValueError(f"max_range must be non-negative, got {max_range}")
    if isinstance(policy, str):
        try:
            policy = ExpungePolicy[policy.strip().upper()]
        except KeyError:
            names = ", ".join(p.name for p in ExpungePolicy)
            raise ValueError(f"unknown expunge policy {policy!r} (expected one of {names})") from None
    elif not isinstance(policy, ExpungePolicy):
        raise ValueError(f"unknown expunge policy {policy!r}")
    return int(max_spans), max_range, policy


def _as_instant(instant: Any) -> float:
    if not isinstance(instant, numbers.Real):
        raise ValueError(f"instant must be a real number, got {type(instant).__name__}")
    date = float(instant)
    if math.isnan(date):
        raise ValueError("NaN is not a valid instant")
    return date


def _same_value(a: Any, b: Any) -> bool:
    """Equality used to collapse adjacent spans holding the same value."""
    if a is b:
        return True
    if a is _EXPUNGED or b is _EXPUNGED or a is None or b is None:
        return False
    if isinstance(a, np.ndarray) or isinstance(b, np.ndarray):
        return bool(np.array_equal(a, b))
    try:
        return bool(a == b)
    except (TypeError, ValueError):
        # Ambiguous comparisons (array-like payloads) never collapse.
        return False


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------

class Transition(Generic[T]):
    """Boundary between two adjacent spans of a :class:`ValidityMap`.

    Attributes
    ----------
    date : float
        Instant at which the ``after`` value starts to apply.
    before : T
        Value of the span ending at ``date``.
    after : T
        Value of the span starting at ``date``.
    """

    __slots__ = ("_owner", "_date")

    def __init__(self, owner: "ValidityMap[T]", date: float) -> None:
        self._owner: Optional[ValidityMap[T]] = owner
        self._date = date

    def _position(self) -> int:
        owner = self._owner
        if owner is None:
            raise StaleViewError(f"transition at t={self._date} was removed from its map")
        return bisect_left(owner._dates, self._date)

    @property
    def date(self) -> float:
        return self._date

    @property
    def before(self) -> T:
        k = self._position()
        value = self._owner._values[k]
        if value is _EXPUNGED:
            raise ExpungedSpanError(self._date)
        return value

    @property
    def after(self) -> T:
        k = self._position()
        value = self._owner._values[k + 1]
        if value is _EXPUNGED:
            raise ExpungedSpanError(self._date)
        return value

    def next(self) -> Optional["Transition[T]"]:
        """Return the following transition, or ``None`` for the last one."""
        k = self._position() + 1
        transitions = self._owner._transitions
        return transitions[k] if k < len(transitions) else None

    def previous(self) -> Optional["Transition[T]"]:
        """Return the preceding transition, or ``None`` for the first one."""
        k = self._position()
        return self._owner._transitions[k - 1] if k > 0 else None

    def reset_date(self, new_date: float, erase_overridden: bool = False) -> None:
        """Move this transition to ``new_date``, keeping its values.

        Parameters
        ----------
        new_date : float
            Target instant.  ``PAST_INFINITY`` / ``FUTURE_INFINITY`` remove
            the transition, letting its after / before value extend to that
            end of the timeline.
        erase_overridden : bool
            If ``True``, transitions crossed by the move are removed along
            with the spans between them.  If ``False`` crossing a neighbour
            raises.

        Raises
        ------
        TransitionCollisionError
            If the move crosses (or lands on) a neighbour and
            ``erase_overridden`` is ``False``.  The map is left unchanged.
        """
        self._position()
        self._owner._move_transition(self, _as_instant(new_date), erase_overridden)

    def __repr__(self) -> str:
        if self._owner is None:
            return f"Transition(t={self._date}, detached)"
        return f"Transition(t={self._date})"


class Span(Generic[T]):
    """Read-only view of one span ``[start, end)`` of a :class:`ValidityMap`.

    A span is valid until the next mutation of its map; afterwards every
    accessor raises :class:`StaleViewError`.
    """

    __slots__ = ("_owner", "_index", "_generation")

    def __init__(self, owner: "ValidityMap[T]", index: int) -> None:
        self._owner = owner
        self._index = index
        self._generation = owner._generation

    def _checked(self) -> "ValidityMap[T]":
        if self._owner._generation != self._generation:
            raise StaleViewError("span view used after its map was modified")
        return self._owner

    @property
    def data(self) -> T:
        """Value holding over the whole span (``None`` is a valid value)."""
        return self._checked()._values[self._index]

    @property
    def start(self) -> float:
        dates = self._checked()._dates
        return dates[self._index - 1] if self._index > 0 else PAST_INFINITY

    @property
    def end(self) -> float:
        dates = self._checked()._dates
        return dates[self._index] if self._index < len(dates) else FUTURE_INFINITY

    def get_start_transition(self) -> Optional[Transition[T]]:
        """Transition opening this span, ``None`` if it starts at ``PAST_INFINITY``."""
        owner = self._checked()
        return owner._transitions[self._index - 1] if self._index > 0 else None

    def get_end_transition(self) -> Optional[Transition[T]]:
        """Transition closing this span, ``None`` if it ends at ``FUTURE_INFINITY``."""
        owner = self._checked()
        transitions = owner._transitions
        return transitions[self._index] if self._index < len(transitions) else None

    def next(self) -> Optional["Span[T]"]:
        """Return the following span, skipping expunged ranges."""
        owner = self._checked()
        index = owner._real_index(self._index + 1, +1)
        return Span(owner, index) if index is not None else None

    def previous(self) -> Optional["Span[T]"]:
        """Return the preceding span, skipping expunged ranges."""
        owner = self._checked()
        index = owner._real_index(self._index - 1, -1)
        return Span(owner, index) if index is not None else None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Span):
            return NotImplemented
        return (
            self._owner is other._owner
            and self._index == other._index
            and self._generation == other._generation
        )

    def __hash__(self) -> int:
        return hash((id(self._owner), self._index, self._generation))

    def __repr__(self) -> str:
        return f"Span([{self.start}, {self.end}) -> {self.data!r})"


# ---------------------------------------------------------------------------
# ValidityMap
# ---------------------------------------------------------------------------

class ValidityMap(Generic[T]):
    """Assignment of a value to every instant of an infinite timeline.

    Why a validity map for GNC?
    ---------------------------
    Force models, estimated parameters and frame corrections are rarely
    valid forever.  Orbit determination solves for one drag coefficient per
    day, a maneuver model applies between ignition and cut-off, and the
    propagator must ask "which value applies at t?" at every integration
    step.  The map answers that in O(log n) and lets the schedule be built
    incrementally -- forward in time while propagating, backward while
    smoothing, or by overwriting a window in the middle.

    Parameters
    ----------
    initial_value : T
        Value of the single span covering the whole timeline.  ``None`` is
        accepted and means "no value applies".

    Examples
    --------
    >>> schedule = ValidityMap("stowed")
    >>> _ = schedule.add_valid_after("deployed", 3600.0)
    >>> schedule.get(0.0), schedule.get(7200.0)
    ('stowed', 'deployed')
    """

    def __init__(self, initial_value: T) -> None:
        self._dates: List[float] = []
        self._transitions: List[Transition[T]] = []
        self._values: List[Any] = [initial_value]
        self._generation: int = 0

        self._max_spans: int = DEFAULT_MAX_SPANS
        self._max_range: float = DEFAULT_MAX_RANGE
        self._expunge_policy: ExpungePolicy = ExpungePolicy.EARLIEST

    # -- lookup ------------------------------------------------------------

    def get(self, instant: float) -> T:
        """Return the value holding at ``instant``.

        Raises
        ------
        ExpungedSpanError
            If ``instant`` falls in a range dropped by the expunge policy.
        """
        return self.get_span(instant).data

    def get_span(self, instant: float) -> Span[T]:
        """Return the span containing ``instant``.

        Spans are half-open, so an instant equal to a transition date
        belongs to the span starting there.
        """
        date = _as_instant(instant)
        index = bisect_right(self._dates, date)
        if self._values[index] is _EXPUNGED:
            raise ExpungedSpanError(date)
        return Span(self, index)

    def sample(self, instants: Sequence[float]) -> List[T]:
        """Vectorised :meth:`get` over many instants.

        Parameters
        ----------
        instants : array_like
            Instants in any order.

        Returns
        -------
        list
            Values in the same order as ``instants``.
        """
        times = np.asarray(instants, dtype=np.float64).ravel()
        if np.isnan(times).any():
            raise ValueError("NaN is not a valid instant")
        indices = np.searchsorted(self.transition_dates(), times, side="right")
        values = []
        for t, index in zip(times, indices):
            value = self._values[index]
            if value is _EXPUNGED:
                raise ExpungedSpanError(float(t))
            values.append(value)
        return values

    # -- insertion ---------------------------------------------------------

    def add_valid_after(self, value: T, instant: float, erase_later: bool = False) -> Optional[Span[T]]:
        """Make ``value`` valid from ``instant`` onwards.

        Parameters
        ----------
        value : T
            Value to install.
        instant : float
            Start of validity.  A transition already present at this date
            is reused: only its ``after`` side changes.
        erase_later : bool
            If ``True`` the value holds up to ``FUTURE_INFINITY`` and every
            later transition is removed.  Otherwise it holds up to the next
            existing transition.

        Returns
        -------
        Span or None
            The span now holding ``value`` from ``instant``; ``None`` only
            if a bounded map expunged it straight away.
        """
        date = _as_instant(instant)
        n = len(self._dates)
        if date == PAST_INFINITY:
            if erase_later:
                self._splice(0, n, [], [value])
            else:
                self._splice(0, 0, [], [value])
        elif date != FUTURE_INFINITY:
            k = bisect_left(self._dates, date)
            exists = k < n and self._dates[k] == date
            hi = n if erase_later else (k + 1 if exists else k)
            transition = self._transitions[k] if exists else Transition(self, date)
            self._splice(k, hi, [transition], [self._values[k], value])
        self._expunge(date)
        return self._span_or_none(bisect_right(self._dates, date))

    def add_valid_before(self, value: T, instant: float, erase_earlier: bool = False) -> Optional[Span[T]]:
        """Make ``value`` valid until ``instant`` (excluded).

        Parameters
        ----------
        value : T
            Value to install.
        instant : float
            End of validity.  A transition already present at this date is
            reused: only its ``before`` side changes.
        erase_earlier : bool
            If ``True`` the value holds from ``PAST_INFINITY`` and every
            earlier transition is removed.  Otherwise it holds from the
            previous existing transition.

        Returns
        -------
        Span or None
            The span now holding ``value`` up to ``instant``; ``None`` only
            if a bounded map expunged it straight away.
        """
        date = _as_instant(instant)
        n = len(self._dates)
        if date == FUTURE_INFINITY:
            if erase_earlier:
                self._splice(0, n, [], [value])
            else:
                self._splice(n, n, [], [value])
        elif date != PAST_INFINITY:
            k = bisect_left(self._dates, date)
            exists = k < n and self._dates[k] == date
            hi = k + 1 if exists else k
            lo = 0 if erase_earlier else k
            transition = self._transitions[k] if exists else Transition(self, date)
            self._splice(lo, hi, [transition], [value, self._values[hi]])
        self._expunge(date)
        return self._span_or_none(bisect_left(self._dates, date))

    def add_valid_between(self, value: T, start: float, end: float) -> Optional[Span[T]]:
        """Make ``value`` valid over ``[start, end)`` only.

        Everything before ``start`` and from ``end`` on keeps its previous
        value.  Transitions strictly inside the interval are removed, and
        the new span is merged with a neighbour already holding an equal
        value.

        Parameters
        ----------
        value : T
            Value to install.
        start, end : float
            Interval bounds, ``start <= end``.  Either may be infinite.

        Returns
        -------
        Span or None
            The span holding ``value`` (possibly extended by merging);
            ``None`` if a bounded map expunged it straight away.  When
            ``start == end`` nothing changes and the span containing
            ``start`` is returned.

        Raises
        ------
        ValueError
            If ``end < start``.
        """
        start = _as_instant(start)
        end = _as_instant(end)
        if end < start:
            raise ValueError(f"end (t={end}) precedes start (t={start})")
        if start == end:
            return self.get_span(start)
        if start == PAST_INFINITY:
            return self.add_valid_before(value, end, True)
        if end == FUTURE_INFINITY:
            return self.add_valid_after(value, start, True)

        i = bisect_left(self._dates, start)
        j = bisect_right(self._dates, end)
        head = self._values[i]
        tail = self._values[j]

        transitions = []
        values = [head]
        if not _same_value(head, value):
            transitions.append(self._transition_at(start, i, j))
            values.append(value)
        if not _same_value(tail, value):
            transitions.append(self._transition_at(end, i, j))
            values.append(tail)
        self._splice(i, j, transitions, values)

        self._expunge(start)
        return self._span_or_none(bisect_right(self._dates, start))

    # -- extraction --------------------------------------------------------

    def extract_range(self, start: float, end: float) -> "ValidityMap[T]":
        """Return an independent copy restricted to ``[start, end)``.

        The value holding at ``start`` extends to ``PAST_INFINITY`` and the
        value holding just before ``end`` extends to ``FUTURE_INFINITY``.
        ``extract_range(PAST_INFINITY, FUTURE_INFINITY)`` is a full copy.
        The copy starts with unlimited expunge settings.

        Raises
        ------
        ValueError
            If ``end < start``.
        ExpungedSpanError
            If ``[start, end)`` overlaps an expunged range.
        """
        start = _as_instant(start)
        end = _as_instant(end)
        if end < start:
            raise ValueError(f"end (t={end}) precedes start (t={start})")

        i = bisect_right(self._dates, start)
        j = max(bisect_left(self._dates, end), i)
        for k in range(i, j + 1):
            if self._values[k] is _EXPUNGED:
                raise ExpungedSpanError(start if k == i else self._dates[k - 1])
        extracted: ValidityMap[T] = ValidityMap(self._values[i])
        extracted._dates = self._dates[i:j]
        extracted._transitions = [Transition(extracted, d) for d in extracted._dates]
        extracted._values = self._values[i:j + 1]
        return extracted

    # -- structure ---------------------------------------------------------

    def get_spans_number(self) -> int:
        """Number of spans (expunged ranges excluded).  Always >= 1."""
        return sum(1 for v in self._values if v is not _EXPUNGED)

    def get_first_span(self) -> Span[T]:
        return Span(self, self._real_index(0, +1))

    def get_last_span(self) -> Span[T]:
        return Span(self, self._real_index(len(self._values) - 1, -1))

    def get_first_non_null_span(self) -> Span[T]:
        """First span whose value is not ``None``.

        Raises
        ------
        NoValueError
            If every span holds ``None``.
        """
        for index, value in enumerate(self._values):
            if value is not None and value is not _EXPUNGED:
                return Span(self, index)
        raise NoValueError("no span of the map holds a value")

    def get_last_non_null_span(self) -> Span[T]:
        """Last span whose value is not ``None``.

        Raises
        ------
        NoValueError
            If every span holds ``None``.
        """
        for index in range(len(self._values) - 1, -1, -1):
            value = self._values[index]
            if value is not None and value is not _EXPUNGED:
                return Span(self, index)
        raise NoValueError("no span of the map holds a value")

    def get_first_transition(self) -> Optional[Transition[T]]:
        return self._transitions[0] if self._transitions else None

    def get_last_transition(self) -> Optional[Transition[T]]:
        return self._transitions[-1] if self._transitions else None

    def transition_dates(self) -> np.ndarray:
        """Transition dates as a ``float64`` array, chronological."""
        return np.asarray(self._dates, dtype=np.float64)

    def spans(self) -> Iterator[Span[T]]:
        span: Optional[Span[T]] = self.get_first_span()
        while span is not None:
            yield span
            span = span.next()

    def transitions(self) -> Iterator[Transition[T]]:
        return iter(list(self._transitions))

    def for_each(self, visitor: Callable[[T], Any]) -> None:
        """Apply ``visitor`` to each span value, chronologically.

        Spans holding ``None`` are skipped.
        """
        for value in list(self._values):
            if value is not None and value is not _EXPUNGED:
                visitor(value)

    # -- expunge -----------------------------------------------------------

    def configure_expunge(
        self,
        max_spans: int,
        max_range: float,
        policy: Union[ExpungePolicy, str] = ExpungePolicy.EARLIEST,
    ) -> None:
        """Bound the map size.

        The limits are enforced after the next addition, not immediately.

        Parameters
        ----------
        max_spans : int
            Maximum number of spans retained.
        max_range : float
            Maximum time (s) between the end of the first span and the
            start of the last span.
        policy : ExpungePolicy or str
            Which extreme span to drop first.
        """
        self._max_spans, self._max_range, self._expunge_policy = validate_expunge_limits(
            max_spans, max_range, policy
        )

    @property
    def expunge_policy(self) -> ExpungePolicy:
        return self._expunge_policy

    # -- internals ---------------------------------------------------------

    def _splice(
        self,
        lo: int,
        hi: int,
        transitions: List[Transition[T]],
        values: List[Any],
    ) -> None:
        """Replace transitions ``[lo, hi)`` and the spans they bound.

        ``values`` replaces ``_values[lo:hi + 1]`` and must hold exactly
        ``len(transitions) + 1`` entries.  Removed transitions that are not
        reused are detached.
        """
        kept = {id(t) for t in transitions}
        for transition in self._transitions[lo:hi]:
            if id(transition) not in kept:
                transition._owner = None
        for transition in transitions:
            transition._owner = self
        self._transitions[lo:hi] = transitions
        self._dates[lo:hi] = [t._date for t in transitions]
        self._values[lo:hi + 1] = values
        self._generation += 1

    def _transition_at(self, date: float, lo: int, hi: int) -> Transition[T]:
        k = bisect_left(self._dates, date, lo, hi)
        if k < hi and self._dates[k] == date:
            return self._transitions[k]
        return Transition(self, date)

    def _real_index(self, index: int, step: int) -> Optional[int]:
        while 0 <= index < len(self._values):
            if self._values[index] is not _EXPUNGED:
                return index
            index += step
        return None

    def _span_or_none(self, index: int) -> Optional[Span[T]]:
        if self._values[index] is _EXPUNGED:
            return None
        return Span(self, index)

    def _move_transition(self, transition: Transition[T], new_date: float, erase: bool) -> None:
        k = bisect_left(self._dates, transition._date)
        old_date = transition._date
        n = len(self._dates)
        if new_date == old_date:
            return

        if new_date < old_date:
            j = bisect_left(self._dates, new_date, 0, k)
            if j < k and not erase:
                raise TransitionCollisionError(old_date, new_date, self._dates[k - 1])
            if new_date == PAST_INFINITY:
                self._splice(0, k + 1, [], [self._values[k + 1]])
            else:
                transition._date = new_date
                self._splice(j, k + 1, [transition], [self._values[j], self._values[k + 1]])
            crossed = k - j
        else:
            m = bisect_right(self._dates, new_date, k + 1, n)
            if m > k + 1 and not erase:
                raise TransitionCollisionError(old_date, new_date, self._dates[k + 1])
            if new_date == FUTURE_INFINITY:
                self._splice(k, n, [], [self._values[k]])
            else:
                transition._date = new_date
                self._splice(k, m, [transition], [self._values[k], self._values[m]])
            crossed = m - k - 1
        transition._date = new_date

        if crossed:
            logger.debug(
                "Moved transition t=%s -> t=%s, erased %d overridden transition(s)",
                old_date, new_date, crossed,
            )
        self._merge_expunged()

    def _merge_expunged(self) -> None:
        """Fuse adjacent expunged ranges into one."""
        k = 0
        while k < len(self._dates):
            if self._values[k] is _EXPUNGED and self._values[k + 1] is _EXPUNGED:
                self._splice(k, k + 1, [], [_EXPUNGED])
            else:
                k += 1

    def _expunge(self, reference: float) -> None:
        """Drop extreme spans until the configured limits hold."""
        if self._max_spans == DEFAULT_MAX_SPANS and math.isinf(self._max_range):
            return
        while True:
            real = [i for i, v in enumerate(self._values) if v is not _EXPUNGED]
            if len(real) <= 1:
                return
            first, last = real[0], real[-1]
            first_end = self._dates[first]
            last_start = self._dates[last - 1]
            if len(real) <= self._max_spans and last_start - first_end <= self._max_range:
                return

            if self._expunge_policy is ExpungePolicy.EARLIEST:
                victim = first
            elif self._expunge_policy is ExpungePolicy.LATEST:
                victim = last
            else:
                victim = last if last_start - reference > reference - first_end else first

            logger.debug(
                "Expunging span %d of %d (%s policy, value %r)",
                victim, len(real), self._expunge_policy.name, self._values[victim],
            )
            self._values[victim] = _EXPUNGED
            self._generation += 1
            self._merge_expunged()

    def __repr__(self) -> str:
        return (
            f"ValidityMap(spans={self.get_spans_number()}, "
            f"transitions={len(self._transitions)})"
        )
