"""Tests for interactive step selection and confirmations."""

from unittest.mock import patch

import pytest

from okit.planner import Plan
from okit.registry import Step
from okit.tui import confirm_cycle, confirm_uninstall, select_steps_interactive


class TestSelectStepsInteractive:
    """Tests for select_steps_interactive function."""

    def test_requires_tty(self, mock_no_tty, sample_registry):
        with pytest.raises(RuntimeError, match="requires a TTY"):
            select_steps_interactive(sample_registry.steps, "install")

    def test_only_steps_supporting_action_offered(self, mock_tty, sample_registry):
        with patch("questionary.checkbox") as mock_cb:
            mock_cb.return_value.ask.return_value = []
            select_steps_interactive(sample_registry.steps, "uninstall")

        offered = [c.value for c in mock_cb.call_args.kwargs["choices"]]
        assert offered == ["Node.js", "Claude Code", "iTerm2"]

    def test_install_choices_show_dependencies(self, mock_tty, sample_registry):
        with patch("questionary.checkbox") as mock_cb:
            mock_cb.return_value.ask.return_value = []
            select_steps_interactive(sample_registry.steps, "install")

        titles = [c.title for c in mock_cb.call_args.kwargs["choices"]]
        assert titles[0] == "Homebrew"
        assert titles[1] == "Node.js  (needs: Homebrew)"

    def test_selection_in_registry_order(self, mock_tty, sample_registry):
        with patch("questionary.checkbox") as mock_cb:
            mock_cb.return_value.ask.return_value = ["iTerm2", "Homebrew"]
            selected = select_steps_interactive(sample_registry.steps, "install")

        assert [s.name for s in selected] == ["Homebrew", "iTerm2"]

    def test_cancel_returns_none(self, mock_tty, sample_registry):
        with patch("questionary.checkbox") as mock_cb:
            mock_cb.return_value.ask.return_value = None
            assert select_steps_interactive(sample_registry.steps, "install") is None

    def test_nothing_to_offer(self, mock_tty):
        steps = [Step(name="Homebrew", install="install brew")]
        with patch("questionary.checkbox") as mock_cb:
            assert select_steps_interactive(steps, "uninstall") == []
        mock_cb.assert_not_called()


class TestConfirmations:
    def test_confirm_uninstall_defaults_to_no(self, sample_registry):
        with patch("click.confirm", return_value=False) as mock_confirm:
            assert confirm_uninstall(sample_registry.steps[:2]) is False

        args, kwargs = mock_confirm.call_args
        assert args[0] == "Uninstall Homebrew, Node.js?"
        assert kwargs["default"] is False

    def test_confirm_cycle_names_the_cycle(self):
        plan = Plan(action="install", ordered=[], cycle=["A", "B"])
        with patch("click.confirm", return_value=True) as mock_confirm:
            assert confirm_cycle(plan) is True

        assert "Dependency cycle among: A, B" in mock_confirm.call_args.args[0]
