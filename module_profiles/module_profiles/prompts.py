"""
Interactive prompts for the command line front end.
"""

from __future__ import annotations

from typing import Callable, Sequence

InputFn = Callable[[str], str]
OutputFn = Callable[[str], None]


def prompt_save_name(input_fn: InputFn = input) -> str:
    """Ask for the save file basename; an empty answer is returned as-is."""
    return input_fn("Enter a name for your save file (e.g., my_module_setup): ").strip()


def choose_profile(names: Sequence[str], *, input_fn: InputFn = input, output: OutputFn = print) -> str:
    """Show a numbered list of save files and keep asking until a valid number is entered."""
    if not names:
        raise ValueError("No save files to choose from.")

    for index, name in enumerate(names, start=1):
        output(f"  {index}) {name}")
    output("")

    while True:
        selection = input_fn("Enter the number of the save file to load: ").strip()
        if selection.isascii() and selection.isdigit() and 1 <= int(selection) <= len(names):
            return names[int(selection) - 1]
        output("Invalid selection. Please enter a number from the list.")
