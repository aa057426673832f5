# /*
# Copyright 2026 The crossplane-kind Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Confirmation capability for destructive actions."""

from __future__ import annotations

from collections.abc import Callable

from rich.prompt import Confirm

from crossplane_kind import console

Confirmer = Callable[[str], bool]


def interactive_confirm(question: str) -> bool:
    """Ask on the terminal; anything but an explicit yes is a no."""
    try:
        return Confirm.ask(question, default=False, console=console)
    except EOFError:
        return False


def auto_confirm(question: str) -> bool:
    console.print(f"[yellow]ℹ️  Auto-confirmed: {question}[/yellow]")
    return True


def make_confirmer(assume_yes: bool) -> Confirmer:
    """Pick the confirmer for a run.

    Args:
        assume_yes: Whether prompts are pre-authorised.

    Returns:
        ``auto_confirm`` when pre-authorised, else ``interactive_confirm``.
    """
    return auto_confirm if assume_yes else interactive_confirm
