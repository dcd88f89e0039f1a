"""Interactive prompts for choices the config leaves unset."""

from typing import Iterable

import click
import questionary

from ..config import PipelineConfig
from ..config.choices import DEFAULT_SELECTIONS, FORCE_FIELDS, SELECTION_PROMPTS, WATER_MODELS


def _ask(question):
    answer = question.ask()
    # questionary returns None when the user hits Ctrl-C
    if answer is None:
        raise click.Abort()
    return answer


def prompt_for_choices(config: PipelineConfig, names: Iterable[str]) -> None:
    """Ask for every dotted setting in ``names`` and store the answers in ``config``."""
    for dotted in names:
        _, _, key = dotted.partition(".")
        if dotted == "system.force_field":
            value = _ask(questionary.select("Select the force field", choices=list(FORCE_FIELDS), default="charmm27"))
        elif dotted == "system.water_model":
            value = _ask(questionary.select("Select the water model", choices=list(WATER_MODELS), default="tip3p"))
        else:
            default = DEFAULT_SELECTIONS.get(key, "")
            multi = isinstance(default, list)
            text = _ask(questionary.text(
                SELECTION_PROMPTS.get(key, key),
                default=" ".join(default) if multi else str(default),
                validate=lambda v: bool(v.strip()) or "A selection is required",
            ))
            value = text.split() if multi else text.strip()
        config.set_choice(dotted, value)
    config.validate()
