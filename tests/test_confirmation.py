"""
Tests for conflict modes and confirmation strategies.
"""

import click
import pytest
from click.testing import CliRunner

from helm_s3repo.error_handling import BadInputError
from helm_s3repo.repository import (
    AssumeNo, AssumeYes, ConflictMode, InteractivePrompt, create_confirmer
)


class TestConflictMode:

    @pytest.mark.parametrize("assume_yes, assume_no, expected", [
        (False, False, ConflictMode.INTERACTIVE),
        (True, False, ConflictMode.ASSUME_YES),
        (False, True, ConflictMode.ASSUME_NO),
    ])
    def test_from_flags(self, assume_yes, assume_no, expected):
        assert ConflictMode.from_flags(assume_yes, assume_no) is expected

    def test_both_flags_rejected(self):
        with pytest.raises(BadInputError, match="mutually exclusive"):
            ConflictMode.from_flags(True, True)


class TestConfirmers:

    def test_create_confirmer(self):
        assert isinstance(create_confirmer(ConflictMode.ASSUME_YES), AssumeYes)
        assert isinstance(create_confirmer(ConflictMode.ASSUME_NO), AssumeNo)
        assert isinstance(create_confirmer(ConflictMode.INTERACTIVE), InteractivePrompt)

    def test_assume_yes_and_no(self):
        assert AssumeYes().confirm("Create?") is True
        assert AssumeNo().confirm("Create?") is False


class TestInteractivePrompt:

    def make_prompt(self, *answers):
        asked = []
        echoed = []
        replies = iter(answers)

        def prompt(text, **kwargs):
            asked.append(text)
            return next(replies)

        return InteractivePrompt(prompt=prompt, echo=echoed.append), asked, echoed

    @pytest.mark.parametrize("answer, expected", [
        ("y", True), ("Yes", True), ("yep", True),
        ("n", False), ("NO", False), ("nope", False),
    ])
    def test_answer_by_first_letter(self, answer, expected):
        confirmer, asked, echoed = self.make_prompt(answer)

        assert confirmer.confirm("Overwrite?") is expected
        assert asked == ["Overwrite? [y/n]"]
        assert echoed == []

    def test_reprompts_until_valid_answer(self):
        confirmer, asked, echoed = self.make_prompt("maybe", "", "y")

        assert confirmer.confirm("Create bucket?") is True
        assert len(asked) == 3
        assert echoed == ["Please answer y/n", "Please answer y/n"]


@click.command()
def ask():
    click.echo(f"answer={InteractivePrompt().confirm('Create bucket?')}")


class TestTerminalPrompt:

    def test_blank_line_asks_for_y_or_n(self):
        result = CliRunner().invoke(ask, input="\nn\n")

        assert result.exit_code == 0, result.output
        assert "Please answer y/n" in result.output
        assert result.output.count("Create bucket? [y/n]") == 2
        assert "answer=False" in result.output

    def test_other_answer_asks_again(self):
        result = CliRunner().invoke(ask, input="perhaps\nYes\n")

        assert result.exit_code == 0, result.output
        assert result.output.count("Please answer y/n") == 1
        assert "answer=True" in result.output
