# src/cstest/settings.py
"""
Randomtest settings and the resolver that produces them from configuration,
the previous run, or the interactive wizard.
"""

from enum import Enum, auto
from typing import Any, Protocol

import attrs
import structlog
from attrs import define, field

from cstest.config.models import PutResultsInDocument, RandomtestConfig
from cstest.telemetry import StructLogger
from cstest.wizard import Prompter, SettingsWizard

log: StructLogger = structlog.get_logger("settings")

PREVIOUS_SETTINGS_KEY = "randomtest.previousSettings"


def _non_negative(inst: Any, attr: Any, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"Field '{attr.name}' must be a non-negative integer, got {value!r}")


class SettingsSource(Enum):
    """Where Randomtest settings come from."""

    CONFIGURED = auto()
    LAST_RUN = auto()
    INTERACTIVE = auto()


@define(frozen=True, slots=True)
class RandomtestSettings:
    """Settings for one Randomtest run."""

    iterations: int = field(validator=_non_negative)
    seed: int = field(validator=_non_negative)
    show_full_text: bool = field(default=False)
    avoid_used_options: bool = field(default=True)
    show_choices: bool = field(default=False)
    show_coverage: bool = field(default=False)
    put_results_in_unique_document: bool = field(default=True)
    # Derived from the configured mode; see with_document_mode().
    put_results_in_document: bool = field(default=False)

    def with_document_mode(self, mode: PutResultsInDocument) -> "RandomtestSettings":
        return attrs.evolve(
            self,
            put_results_in_document=put_results_in_document(mode, self.show_full_text),
        )

    def to_dict(self) -> dict[str, Any]:
        return attrs.asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RandomtestSettings":
        names = {a.name for a in attrs.fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})

    def to_args(self, choicescript_path: str, scene_path: str) -> list[str]:
        """Command-line arguments understood by randomtest.js."""

        def flag(value: bool) -> str:
            return "true" if value else "false"

        return [
            f"cs={choicescript_path}",
            f"project={scene_path}",
            f"num={self.iterations}",
            f"seed={self.seed}",
            f"showText={flag(self.show_full_text)}",
            f"avoidUsedOptions={flag(self.avoid_used_options)}",
            f"showChoices={flag(self.show_choices)}",
            f"showCoverage={flag(self.show_coverage)}",
            "saveStats=true",
        ]


def put_results_in_document(mode: PutResultsInDocument, show_full_text: bool) -> bool:
    return mode is PutResultsInDocument.ALWAYS or (
        mode is PutResultsInDocument.FULLTEXT and show_full_text
    )


def settings_from_config(config: RandomtestConfig) -> RandomtestSettings:
    return RandomtestSettings(
        iterations=config.iterations,
        seed=config.random_seed,
        show_full_text=config.show_full_text,
        avoid_used_options=config.avoid_used_options,
        show_choices=config.show_choices,
        show_coverage=config.show_line_coverage_statistics,
        put_results_in_unique_document=config.put_results_in_unique_document,
    ).with_document_mode(config.put_results_in_document)


class KeyValueStorage(Protocol):
    def get_value(self, key: str, default: Any = None) -> Any: ...

    def set_value(self, key: str, value: Any) -> None: ...


class SettingsResolver:
    """Produces validated Randomtest settings and remembers the last ones used."""

    def __init__(
        self,
        config: RandomtestConfig,
        storage: KeyValueStorage,
        prompter: Prompter | None = None,
    ):
        self.config = config
        self.storage = storage
        self.prompter = prompter

    def has_previous_settings(self) -> bool:
        return self.previous_settings() is not None

    def previous_settings(self) -> RandomtestSettings | None:
        data = self.storage.get_value(PREVIOUS_SETTINGS_KEY)
        if not data:
            return None
        try:
            return RandomtestSettings.from_dict(data)
        except (TypeError, ValueError) as e:
            log.warning("Ignoring unreadable previous Randomtest settings", error=str(e))
            return None

    async def resolve(self, source: SettingsSource) -> RandomtestSettings:
        """
        Resolve settings from ``source`` and persist them as the last run.

        Raises:
            WizardCancelledError: if the interactive wizard is abandoned.
                Nothing is persisted in that case.
        """
        settings = settings_from_config(self.config)

        if source is SettingsSource.LAST_RUN:
            previous = self.previous_settings()
            if previous is None:
                log.info("No previous Randomtest settings; using configuration")
            else:
                # Always reflects the current preference, not the one saved with the run.
                settings = attrs.evolve(
                    previous,
                    put_results_in_unique_document=self.config.put_results_in_unique_document,
                )
        elif source is SettingsSource.INTERACTIVE:
            if self.prompter is None:
                raise ValueError("Interactive settings need a prompter")
            settings = await SettingsWizard(self.prompter).run(settings)

        settings = settings.with_document_mode(self.config.put_results_in_document)
        self.storage.set_value(PREVIOUS_SETTINGS_KEY, settings.to_dict())
        log.info("Resolved Randomtest settings", source=source.name, **settings.to_dict())
        return settings
