"""Explicit status machines for transactions and entity workflows."""

from dataclasses import dataclass
from typing import Optional

from hera.domain.errors import InvariantError, ValidationError


@dataclass(frozen=True)
class StatusMachine:
    """Allowed states and transitions for one record type.

    Attributes:
        name: Record type the machine governs (e.g. "transaction", "appointment")
        initial: States a record may be created in
        transitions: Mapping of state to the states reachable from it
    """

    name: str
    initial: frozenset[str]
    transitions: dict[str, frozenset[str]]

    @property
    def states(self) -> frozenset[str]:
        result = set(self.transitions)
        for targets in self.transitions.values():
            result |= targets
        return frozenset(result)

    def is_terminal(self, state: str) -> bool:
        return not self.transitions.get(state)

    def can_transition(self, current: Optional[str], target: str) -> bool:
        if current is None:
            return target in self.initial
        return target in self.transitions.get(current, frozenset())

    def check_known(self, state: str) -> str:
        if state not in self.states:
            raise ValidationError(
                f"Unknown {self.name} status '{state}'",
                details=[f"allowed: {', '.join(sorted(self.states))}"],
            )
        return state

    def check_transition(self, current: Optional[str], target: str) -> str:
        """Validate a transition and return the target state.

        Raises:
            ValidationError: if the target state is unknown
            InvariantError: if the transition is not allowed
        """
        self.check_known(target)
        if self.can_transition(current, target):
            return target
        if current is None:
            raise InvariantError(
                f"A {self.name} cannot start in status '{target}'",
                details=[f"initial statuses: {', '.join(sorted(self.initial))}"],
            )
        allowed = sorted(self.transitions.get(current, frozenset()))
        raise InvariantError(
            f"Cannot move {self.name} from '{current}' to '{target}'",
            details=[f"allowed from '{current}': {', '.join(allowed) if allowed else 'none (terminal)'}"],
        )


TRANSACTION_STATUS_MACHINE = StatusMachine(
    name="transaction",
    initial=frozenset({"draft", "completed", "posted"}),
    transitions={
        "draft": frozenset({"completed", "posted", "void"}),
        "completed": frozenset({"posted", "void"}),
        "posted": frozenset({"void"}),
        "void": frozenset(),
    },
)
