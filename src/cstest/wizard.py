# src/cstest/wizard.py
"""
Step-by-step collection of Randomtest settings.

The wizard is a small state machine. Each ``WizardStep`` edits one field of
the settings record; ``NEXT_STEP`` gives the order. A prompter answers each
step with a value, ``Nav.BACK`` to revisit the previous step, or
``Nav.CANCEL`` to abandon the wizard.
"""

import re
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import attrs
import structlog
from attrs import define

from cstest.exceptions import ValidationError, WizardCancelledError
from cstest.telemetry import StructLogger

if TYPE_CHECKING:
    from cstest.settings import RandomtestSettings

log: StructLogger = structlog.get_logger("wizard")

WIZARD_TITLE = "Randomtest Settings"
NOT_AN_INTEGER = "Not an integer"

_INTEGER_RE = re.compile(r"[0-9]+")


class Nav(Enum):
    """Navigation answers a prompter may give instead of a value."""

    BACK = auto()
    CANCEL = auto()


class StepKind(Enum):
    INTEGER = auto()
    YES_NO = auto()


class WizardStep(Enum):
    ITERATIONS = 1
    SEED = 2
    SHOW_FULL_TEXT = 3
    AVOID_USED_OPTIONS = 4
    SHOW_CHOICES = 5
    SHOW_COVERAGE = 6


@define(frozen=True, slots=True)
class StepSpec:
    field_name: str
    kind: StepKind
    prompt: str


STEP_SPECS: dict[WizardStep, StepSpec] = {
    WizardStep.ITERATIONS: StepSpec("iterations", StepKind.INTEGER, "Number of times to run randomtest"),
    WizardStep.SEED: StepSpec("seed", StepKind.INTEGER, "Choose a random seed"),
    WizardStep.SHOW_FULL_TEXT: StepSpec(
        "show_full_text", StepKind.YES_NO, "Show the full text that randomtest encounters"
    ),
    WizardStep.AVOID_USED_OPTIONS: StepSpec("avoid_used_options", StepKind.YES_NO, "Avoid used options"),
    WizardStep.SHOW_CHOICES: StepSpec("show_choices", StepKind.YES_NO, "Show choices that randomtest makes"),
    WizardStep.SHOW_COVERAGE: StepSpec(
        "show_coverage", StepKind.YES_NO, "After the test, show how many times each line was encountered"
    ),
}

FIRST_STEP = WizardStep.ITERATIONS
NEXT_STEP: dict[WizardStep, WizardStep | None] = {
    WizardStep.ITERATIONS: WizardStep.SEED,
    WizardStep.SEED: WizardStep.SHOW_FULL_TEXT,
    WizardStep.SHOW_FULL_TEXT: WizardStep.AVOID_USED_OPTIONS,
    WizardStep.AVOID_USED_OPTIONS: WizardStep.SHOW_CHOICES,
    WizardStep.SHOW_CHOICES: WizardStep.SHOW_COVERAGE,
    WizardStep.SHOW_COVERAGE: None,
}
PREVIOUS_STEP: dict[WizardStep, WizardStep] = {
    nxt: step for step, nxt in NEXT_STEP.items() if nxt is not None
}
TOTAL_STEPS = len(STEP_SPECS)


@define(frozen=True, slots=True)
class PromptRequest:
    """Everything a prompter needs to render one step."""

    title: str
    step: WizardStep
    total_steps: int
    prompt: str
    default: Any
    error: str | None = None

    @property
    def step_number(self) -> int:
        return self.step.value


@runtime_checkable
class Prompter(Protocol):
    """Asks the user for one wizard answer at a time."""

    async def ask_integer(self, request: PromptRequest) -> str | Nav:
        """Return the raw text typed by the user, or a navigation answer."""
        ...

    async def ask_yes_no(self, request: PromptRequest) -> bool | Nav:
        ...


def parse_non_negative_int(entry: str) -> int:
    """
    Parse free-form text as a non-negative integer.

    Surrounding whitespace is ignored; anything else besides ASCII digits is
    rejected.
    """
    text = entry.strip()
    if not _INTEGER_RE.fullmatch(text):
        raise ValidationError(NOT_AN_INTEGER)
    return int(text)


class SettingsWizard:
    """Drives a prompter through every step and returns the edited settings."""

    def __init__(self, prompter: Prompter, title: str = WIZARD_TITLE):
        self.prompter = prompter
        self.title = title

    async def _ask(self, step: WizardStep, default: Any, error: str | None) -> Any:
        spec = STEP_SPECS[step]
        request = PromptRequest(
            title=self.title,
            step=step,
            total_steps=TOTAL_STEPS,
            prompt=spec.prompt,
            default=str(default) if spec.kind is StepKind.INTEGER else bool(default),
            error=error,
        )
        if spec.kind is StepKind.INTEGER:
            return await self.prompter.ask_integer(request)
        return await self.prompter.ask_yes_no(request)

    async def run(self, initial: "RandomtestSettings") -> "RandomtestSettings":
        """
        Collect settings starting from ``initial``.

        Raises:
            WizardCancelledError: if the prompter cancels at any step.
        """
        answers = {spec.field_name: getattr(initial, spec.field_name) for spec in STEP_SPECS.values()}
        step: WizardStep | None = FIRST_STEP
        error: str | None = None

        while step is not None:
            spec = STEP_SPECS[step]
            answer = await self._ask(step, answers[spec.field_name], error)
            error = None

            if answer is Nav.CANCEL:
                log.info("Settings wizard cancelled", step=step.name)
                raise WizardCancelledError(f"Randomtest settings cancelled at step {step.value} of {TOTAL_STEPS}")
            if answer is Nav.BACK:
                step = PREVIOUS_STEP.get(step, step)
                continue

            if spec.kind is StepKind.INTEGER:
                try:
                    value: Any = parse_non_negative_int(answer)
                except ValidationError as e:
                    log.debug("Rejected wizard input", step=step.name, entry=answer)
                    error = str(e)
                    continue
            else:
                value = bool(answer)

            answers[spec.field_name] = value
            step = NEXT_STEP[step]

        log.debug("Settings wizard completed", **answers)
        return attrs.evolve(initial, **answers)
