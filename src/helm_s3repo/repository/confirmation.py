"""
Conflict resolution for destructive or state-changing steps.

Creating a bucket, replacing an existing index and overwriting an existing
chart all ask the same yes/no question. How it is answered is decided once
per invocation by the ``-y`` / ``-n`` flags.
"""

import logging
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Optional

import click

from ..error_handling import BadInputError

logger = logging.getLogger(__name__)

YES_PATTERN = re.compile(r"^[yY]")
NO_PATTERN = re.compile(r"^[nN]")


class ConflictMode(Enum):
    """How yes/no questions are answered."""
    INTERACTIVE = "interactive"
    ASSUME_YES = "assume-yes"
    ASSUME_NO = "assume-no"

    @classmethod
    def from_flags(cls, assume_yes: bool, assume_no: bool) -> "ConflictMode":
        """
        Build the mode from the ``-y`` / ``-n`` command-line flags.

        Raises:
            BadInputError: If both flags are given
        """
        if assume_yes and assume_no:
            raise BadInputError("Options -y and -n are mutually exclusive")
        if assume_yes:
            return cls.ASSUME_YES
        if assume_no:
            return cls.ASSUME_NO
        return cls.INTERACTIVE


class Confirmer(ABC):
    """Strategy answering a yes/no question."""

    mode: ConflictMode

    @abstractmethod
    def confirm(self, question: str) -> bool:
        """
        Answer a yes/no question.

        Args:
            question: Question shown to the user, without the ``[y/n]`` suffix

        Returns:
            True to proceed
        """
        pass


class AssumeYes(Confirmer):
    mode = ConflictMode.ASSUME_YES

    def confirm(self, question: str) -> bool:
        logger.info(f"Assuming yes: {question}")
        return True


class AssumeNo(Confirmer):
    mode = ConflictMode.ASSUME_NO

    def confirm(self, question: str) -> bool:
        logger.info(f"Assuming no: {question}")
        return False


class InteractivePrompt(Confirmer):
    """
    Ask on the terminal until the answer starts with y or n.

    Blocks without a timeout. Any other answer prints a hint and asks again.
    """

    mode = ConflictMode.INTERACTIVE

    def __init__(
        self,
        prompt: Optional[Callable[..., str]] = None,
        echo: Optional[Callable[..., None]] = None
    ):
        self._prompt = prompt or click.prompt
        self._echo = echo or click.echo

    def confirm(self, question: str) -> bool:
        while True:
            # An empty default hands blank lines back here instead of click re-asking
            answer = self._prompt(f"{question} [y/n]", default="", prompt_suffix=" ", show_default=False)
            answer = (answer or "").strip()
            if YES_PATTERN.match(answer):
                return True
            if NO_PATTERN.match(answer):
                return False
            self._echo("Please answer y/n")


def create_confirmer(mode: ConflictMode) -> Confirmer:
    """Return the confirmation strategy for a mode."""
    if mode is ConflictMode.ASSUME_YES:
        return AssumeYes()
    if mode is ConflictMode.ASSUME_NO:
        return AssumeNo()
    return InteractivePrompt()
