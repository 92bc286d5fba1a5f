# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""State machine infrastructure for the wave lifecycle.

Provides the small State and StateMachine classes that WaveController
composes into its SPAWNING -> ACTIVE -> CLEARING -> COMPLETE cycle.

The FSM is driven by the owner's tick loop.  Each tick:
  1. Evaluate the current state's condition transitions (first match wins)
  2. If one fires, set the new state and call its on_enter
  3. Otherwise call the current state's tick(); a returned state name
     triggers a transition

The initial state is current from construction; its on_enter is not
called.  force_state() jumps anywhere and does call on_enter.

Usage::

    sm = StateMachine("idle")
    sm.add_state(State("idle"))
    sm.add_state(State("alert"))
    sm.add_transition("idle", "alert", lambda ctx: ctx.get("enemy"))
    sm.tick({"enemy": True})
"""

from __future__ import annotations

from typing import Callable


class State:
    """A named state.

    Args:
        name: Unique state identifier.
        on_enter: Called with the tick context when the state is entered.
        on_tick: Called with the tick context while the state is current.
                 A returned state name requests a transition.
    """

    def __init__(
        self,
        name: str,
        on_enter: Callable[[dict], None] | None = None,
        on_tick: Callable[[dict], str | None] | None = None,
    ) -> None:
        self.name = name
        self._on_enter_cb = on_enter
        self._on_tick_cb = on_tick

    def on_enter(self, ctx: dict) -> None:
        if self._on_enter_cb is not None:
            self._on_enter_cb(ctx)

    def tick(self, ctx: dict) -> str | None:
        if self._on_tick_cb is not None:
            return self._on_tick_cb(ctx)
        return None


class StateMachine:
    """Finite state machine with condition and tick-return transitions."""

    def __init__(self, initial_state: str) -> None:
        if not initial_state:
            raise ValueError("initial_state is required")
        self._states: dict[str, State] = {}
        self._transitions: dict[str, list[tuple[str, Callable[[dict], bool]]]] = {}
        self._current_name = initial_state

    def add_state(self, state: State) -> None:
        self._states[state.name] = state

    def add_transition(
        self,
        from_state: str,
        to_state: str,
        condition: Callable[[dict], bool],
    ) -> None:
        """Move from *from_state* to *to_state* on a tick where *condition(ctx)* holds.

        Transitions out of one state are evaluated in the order added.
        """
        self._transitions.setdefault(from_state, []).append((to_state, condition))

    @property
    def current_state(self) -> str:
        return self._current_name

    def tick(self, ctx: dict | None = None) -> bool:
        """Advance the FSM one step.  Returns True if the state changed."""
        if ctx is None:
            ctx = {}
        current = self._states.get(self._current_name)
        if current is None:
            return False

        for to_state, condition in self._transitions.get(self._current_name, []):
            if condition(ctx):
                self._enter(to_state, ctx)
                return True

        result = current.tick(ctx)
        if result is not None and result in self._states and result != self._current_name:
            self._enter(result, ctx)
            return True
        return False

    def force_state(self, state_name: str, ctx: dict | None = None) -> None:
        """Jump to *state_name* without evaluating conditions."""
        if state_name not in self._states:
            raise ValueError(f"State '{state_name}' not found")
        self._enter(state_name, ctx or {})

    def _enter(self, state_name: str, ctx: dict) -> None:
        self._current_name = state_name
        state = self._states.get(state_name)
        if state is not None:
            state.on_enter(ctx)
