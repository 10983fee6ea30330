"""A small asynchronous step-workflow engine.

A workflow is a mapping of step name -> ``Step``. Non-terminal steps carry an
async action and a transition table keyed by event name. The engine awaits one
action at a time against a shared context, routes on the event the action
emits and stops as soon as it enters a terminal step.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Hashable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from github_contents_cache.errors import WorkflowDefinitionError

logger = logging.getLogger(__name__)

ON_DONE = "onDone"
ON_ERROR = "onError"


@dataclass(frozen=True, slots=True)
class StepResult:
    """What a step action hands back to the engine.

    ``event`` picks the outgoing transition; when it is ``None`` the implicit
    ``onDone`` event is used.
    """

    event: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


StepAction = Callable[[Any], Awaitable[StepResult | None]]
TransitionHook = Callable[[Hashable, str, Hashable], None]


@dataclass(frozen=True, slots=True)
class Step:
    action: StepAction | None = None
    transitions: Mapping[str, Hashable] = field(default_factory=dict)
    terminal: bool = False


@dataclass(frozen=True, slots=True)
class WorkflowResult:
    """Terminal step reached by a run, with the event and payload that led there."""

    step: Hashable
    event: str | None
    data: Any


def step_name(step: Hashable) -> str:
    if isinstance(step, Enum):
        return str(step.value)
    return str(step)


async def run_workflow(
    *,
    initial_step: Hashable,
    steps: Mapping[Hashable, Step],
    context: Any,
    trace: bool = False,
    on_transition: TransitionHook | None = None,
) -> WorkflowResult:
    """Drive ``steps`` from ``initial_step`` until a terminal step is entered.

    Args:
        initial_step: Name of the first step.
        steps: Step definitions keyed by step name.
        context: Mutable object handed to every action.
        trace: Log each transition at DEBUG level.
        on_transition: Optional observer called with (step, event, next_step).
            Exceptions it raises are logged and ignored.

    Returns:
        The terminal step together with the payload of the step that entered it.

    Raises:
        WorkflowDefinitionError: A step is missing, a non-terminal step has no
            action, or an emitted event has no transition.
    """
    if not initial_step:
        raise WorkflowDefinitionError("No initial step was provided")

    current = initial_step
    event: str | None = None
    data: Any = None

    while True:
        config = steps.get(current)
        if config is None:
            raise WorkflowDefinitionError(f"Could not find config for {step_name(current)}")
        if config.terminal:
            return WorkflowResult(step=current, event=event, data=data)
        if config.action is None:
            raise WorkflowDefinitionError(
                f"Entered step {step_name(current)} which is not a terminal step "
                "but does not have an action"
            )

        try:
            result = await config.action(context)
        except Exception as exc:
            event, data = ON_ERROR, exc
        else:
            if result is None:
                event, data = ON_DONE, {}
            else:
                event, data = result.event or ON_DONE, result.data

        next_step = config.transitions.get(event)
        if next_step is None:
            raise WorkflowDefinitionError(
                f"Step {step_name(current)} has no transition for event {event}"
            )

        if trace:
            logger.debug(
                "Workflow transition",
                extra={
                    "step": step_name(current),
                    "event": event,
                    "next_step": step_name(next_step),
                },
            )
        if on_transition is not None:
            try:
                on_transition(current, event, next_step)
            except Exception:
                logger.warning(
                    "Transition observer failed",
                    extra={"step": step_name(current), "event": event},
                    exc_info=True,
                )

        current = next_step
