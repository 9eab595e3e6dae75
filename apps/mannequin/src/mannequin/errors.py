from __future__ import annotations


class MannequinError(Exception):
    """Base class for recoverable character-controller failures."""


class NotReady(MannequinError):
    """An action was referenced before the action library finished loading it."""

    def __init__(self, action_id: object, *, missing: tuple[str, ...] = ()) -> None:
        self.action_id = action_id
        self.missing = tuple(missing)
        text = f"action {action_id!s} is not registered yet"
        if self.missing:
            text += f" (still missing: {', '.join(self.missing)})"
        super().__init__(text)


class UnknownAction(MannequinError, KeyError):
    """Identifier is outside the fixed action set."""

    def __init__(self, action_id: object) -> None:
        self.action_id = action_id
        super().__init__(f"unknown action identifier: {action_id!r}")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message.
        return str(self.args[0])


class InvalidTransition(MannequinError):
    """Transition requested on a blend controller that has no active action."""


__all__ = ["InvalidTransition", "MannequinError", "NotReady", "UnknownAction"]
