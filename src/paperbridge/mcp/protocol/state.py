"""Session state machine for the MCP lifecycle."""

import logging
from enum import Enum, auto
from typing import Callable

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """
    Session lifecycle states.

    State transitions:
        NEW -> CONNECTING -> INITIALIZING -> READY
          \\         \\             \\          \\
           ------------------------------------> CLOSED

    CLOSED is terminal: a session whose process has exited or whose
    handshake failed is never reused.
    """

    NEW = auto()
    CONNECTING = auto()
    INITIALIZING = auto()
    READY = auto()
    CLOSED = auto()

    def __str__(self) -> str:
        return self.name


class InvalidStateTransition(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_state: SessionState, to_state: SessionState):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid state transition: {from_state.name} -> {to_state.name}"
        )


StateTransitionCallback = Callable[[SessionState, SessionState], None]


class SessionStateMachine:
    """
    Tracks session lifecycle state.

    Enforces valid state transitions and notifies listeners
    when transitions occur.
    """

    VALID_TRANSITIONS: dict[SessionState, list[SessionState]] = {
        SessionState.NEW: [SessionState.CONNECTING, SessionState.CLOSED],
        SessionState.CONNECTING: [SessionState.INITIALIZING, SessionState.CLOSED],
        SessionState.INITIALIZING: [SessionState.READY, SessionState.CLOSED],
        SessionState.READY: [SessionState.CLOSED],
        SessionState.CLOSED: [],
    }

    def __init__(self, initial_state: SessionState = SessionState.NEW):
        self._state = initial_state
        self._listeners: list[StateTransitionCallback] = []

    @property
    def state(self) -> SessionState:
        """Current session state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if requests may be sent (INITIALIZING or READY)."""
        return self._state in (SessionState.INITIALIZING, SessionState.READY)

    @property
    def is_ready(self) -> bool:
        """Check if the handshake has completed."""
        return self._state == SessionState.READY

    @property
    def is_closed(self) -> bool:
        """Check if the session has ended."""
        return self._state == SessionState.CLOSED

    def can_transition_to(self, new_state: SessionState) -> bool:
        """Check if transition to new_state is valid."""
        return new_state in self.VALID_TRANSITIONS.get(self._state, [])

    def transition(self, new_state: SessionState) -> None:
        """
        Transition to a new state.

        Args:
            new_state: The target state.

        Raises:
            InvalidStateTransition: If the transition is not valid.
        """
        if not self.can_transition_to(new_state):
            raise InvalidStateTransition(self._state, new_state)

        old_state = self._state
        self._state = new_state
        logger.debug(f"Session state {old_state.name} -> {new_state.name}")

        for listener in self._listeners:
            try:
                listener(old_state, new_state)
            except Exception:
                logger.exception("State transition listener failed")

    def on_transition(self, callback: StateTransitionCallback) -> None:
        """
        Register a callback for state transitions.

        Args:
            callback: Function called with (old_state, new_state) on transitions.
        """
        self._listeners.append(callback)

    def __str__(self) -> str:
        return f"SessionStateMachine({self._state.name})"

    def __repr__(self) -> str:
        return f"SessionStateMachine(state={self._state!r})"
