from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TypeVar

from ship.core.result import Err, Ok, Result
from ship.services.release.errors import ReleaseError

S = TypeVar("S")


@dataclass(frozen=True, slots=True)
class StepAdvance[S]:
    session: S


@dataclass(frozen=True, slots=True)
class StepFinish[S]:
    session: S


StepOutcome = StepAdvance[S] | StepFinish[S]
StepHandler = Callable[[S], Result[StepOutcome[S], ReleaseError]]
SaveState = Callable[[S], None]
GetStep = Callable[[S], str]


def advance[S](session: S) -> StepAdvance[S]:
    return StepAdvance(session=session)


def finish[S](session: S) -> StepFinish[S]:
    return StepFinish(session=session)


def run_state_machine(
    *,
    initial_state: S,
    get_step: GetStep[S],
    handlers: Mapping[str, StepHandler[S]],
    save_state: SaveState[S],
) -> Result[S, ReleaseError]:
    """Drive ``handlers`` from ``initial_state`` until one finishes or fails.

    ``save_state`` sees every state a handler advanced to, in order.
    """
    current = initial_state

    while True:
        step = get_step(current)
        handler = handlers.get(step)
        if handler is None:
            return Err(
                ReleaseError(
                    kind="invalid_resume",
                    message=f"no pipeline transition out of stage: {step}",
                )
            )

        outcome = handler(current)
        if isinstance(outcome, Err):
            return outcome

        current = outcome.value.session
        save_state(current)
        if isinstance(outcome.value, StepFinish):
            return Ok(current)
