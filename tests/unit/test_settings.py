# tests/unit/test_settings.py

"""Unit tests for Randomtest settings resolution."""

import attrs
import pytest

from cstest.config import PutResultsInDocument, RandomtestConfig
from cstest.exceptions import WizardCancelledError
from cstest.settings import (
    PREVIOUS_SETTINGS_KEY,
    RandomtestSettings,
    SettingsResolver,
    SettingsSource,
    put_results_in_document,
    settings_from_config,
)
from cstest.storage import MemoryStorage
from cstest.wizard import Nav


@pytest.mark.parametrize(
    "mode, show_full_text, expected",
    [
        (PutResultsInDocument.NEVER, False, False),
        (PutResultsInDocument.NEVER, True, False),
        (PutResultsInDocument.ALWAYS, False, True),
        (PutResultsInDocument.ALWAYS, True, True),
        (PutResultsInDocument.FULLTEXT, False, False),
        (PutResultsInDocument.FULLTEXT, True, True),
    ],
)
def test_put_results_in_document_derivation(mode, show_full_text: bool, expected: bool) -> None:
    assert put_results_in_document(mode, show_full_text) is expected
    settings = RandomtestSettings(iterations=1, seed=0, show_full_text=show_full_text)
    assert settings.with_document_mode(mode).put_results_in_document is expected


def test_settings_reject_negative_numbers() -> None:
    with pytest.raises(ValueError):
        RandomtestSettings(iterations=-1, seed=0)
    with pytest.raises(ValueError):
        RandomtestSettings(iterations=1, seed=-3)


def test_randomtest_args_are_ordered_key_value_tokens() -> None:
    settings = RandomtestSettings(
        iterations=250,
        seed=12,
        show_full_text=True,
        avoid_used_options=False,
        show_choices=True,
        show_coverage=False,
    )

    assert settings.to_args("/cs", "/game/scenes") == [
        "cs=/cs",
        "project=/game/scenes",
        "num=250",
        "seed=12",
        "showText=true",
        "avoidUsedOptions=false",
        "showChoices=true",
        "showCoverage=false",
        "saveStats=true",
    ]


def test_from_dict_ignores_unknown_keys() -> None:
    data = RandomtestSettings(iterations=3, seed=4).to_dict()
    data["legacy"] = "value"
    assert RandomtestSettings.from_dict(data) == RandomtestSettings(iterations=3, seed=4)


@pytest.mark.asyncio
class TestSettingsResolver:
    async def test_configured_reads_configuration(
        self, randomtest_config: RandomtestConfig, storage: MemoryStorage
    ) -> None:
        resolver = SettingsResolver(randomtest_config, storage)

        settings = await resolver.resolve(SettingsSource.CONFIGURED)

        assert settings.iterations == 50
        assert settings.seed == 7
        assert settings.avoid_used_options is True
        assert settings.show_coverage is True
        assert settings.put_results_in_unique_document is False
        assert settings.put_results_in_document is False

    async def test_configured_is_idempotent(
        self, randomtest_config: RandomtestConfig, storage: MemoryStorage
    ) -> None:
        resolver = SettingsResolver(randomtest_config, storage)

        first = await resolver.resolve(SettingsSource.CONFIGURED)
        second = await resolver.resolve(SettingsSource.CONFIGURED)

        assert first == second == settings_from_config(randomtest_config)

    async def test_every_resolution_is_persisted(
        self, randomtest_config: RandomtestConfig, storage: MemoryStorage
    ) -> None:
        resolver = SettingsResolver(randomtest_config, storage)
        assert resolver.has_previous_settings() is False

        settings = await resolver.resolve(SettingsSource.CONFIGURED)

        assert storage.get_value(PREVIOUS_SETTINGS_KEY) == settings.to_dict()
        assert resolver.has_previous_settings() is True

    async def test_last_run_without_snapshot_falls_back_to_configuration(
        self, randomtest_config: RandomtestConfig, storage: MemoryStorage
    ) -> None:
        resolver = SettingsResolver(randomtest_config, storage)

        settings = await resolver.resolve(SettingsSource.LAST_RUN)

        assert settings == settings_from_config(randomtest_config)

    async def test_last_run_replays_interactive_settings_except_unique_document(
        self, randomtest_config: RandomtestConfig, storage: MemoryStorage, scripted_prompter
    ) -> None:
        prompter = scripted_prompter(["900", "31", True, False, True, False])
        interactive = await SettingsResolver(randomtest_config, storage, prompter).resolve(
            SettingsSource.INTERACTIVE
        )
        assert interactive.put_results_in_unique_document is False

        # The user changes the live preference between runs.
        live_config = attrs.evolve(randomtest_config, put_results_in_unique_document=True, iterations=1)
        replayed = await SettingsResolver(live_config, storage).resolve(SettingsSource.LAST_RUN)

        assert replayed.iterations == 900
        assert replayed.seed == 31
        assert replayed.show_full_text is True
        assert replayed.avoid_used_options is False
        assert replayed.show_choices is True
        assert replayed.show_coverage is False
        assert replayed.put_results_in_unique_document is True

    async def test_interactive_recomputes_document_mode(
        self, randomtest_config: RandomtestConfig, storage: MemoryStorage, scripted_prompter
    ) -> None:
        # fulltext mode: the wizard turning on full text sends results to a document.
        prompter = scripted_prompter(["5", "0", True, True, True, True])

        settings = await SettingsResolver(randomtest_config, storage, prompter).resolve(
            SettingsSource.INTERACTIVE
        )

        assert settings.put_results_in_document is True

    async def test_cancelled_wizard_persists_nothing(
        self, randomtest_config: RandomtestConfig, storage: MemoryStorage, scripted_prompter
    ) -> None:
        prompter = scripted_prompter(["5", Nav.CANCEL])
        resolver = SettingsResolver(randomtest_config, storage, prompter)

        with pytest.raises(WizardCancelledError):
            await resolver.resolve(SettingsSource.INTERACTIVE)

        assert storage.get_value(PREVIOUS_SETTINGS_KEY) is None

    async def test_interactive_requires_prompter(
        self, randomtest_config: RandomtestConfig, storage: MemoryStorage
    ) -> None:
        with pytest.raises(ValueError):
            await SettingsResolver(randomtest_config, storage).resolve(SettingsSource.INTERACTIVE)

    async def test_unreadable_snapshot_is_ignored(
        self, randomtest_config: RandomtestConfig, storage: MemoryStorage
    ) -> None:
        storage.set_value(PREVIOUS_SETTINGS_KEY, {"iterations": -4, "seed": 1})
        resolver = SettingsResolver(randomtest_config, storage)

        assert resolver.previous_settings() is None
        assert await resolver.resolve(SettingsSource.LAST_RUN) == settings_from_config(randomtest_config)
