"""
Console prompts for the interactive steps: layer selection and wall type ties.
"""

from typing import Callable, List, Optional, Sequence

from cadwalls.core.models import WallTypeCatalogEntry

InputFunc = Callable[[str], str]


def format_tie_message(
    pair_index: int,
    thickness_mm: float,
    candidates: Sequence[WallTypeCatalogEntry],
) -> str:
    """Text shown when two wall types are equally close to a measured thickness."""
    first, second = candidates[0], candidates[1]
    lines = [
        f"Line pair #{pair_index + 1}",
        f"Measured thickness: {thickness_mm:.1f} mm",
        "",
        "Two wall types are equally close:",
        f"  [1] {first.name} ({first.thickness:g} mm) - difference: "
        f"{abs(first.thickness - thickness_mm):.1f} mm",
        f"  [2] {second.name} ({second.thickness:g} mm) - difference: "
        f"{abs(second.thickness - thickness_mm):.1f} mm",
    ]
    return "\n".join(lines)


class ConsoleTieBreaker:
    """Asks on the console which of two tied wall types to use."""

    def __init__(self, input_func: InputFunc = input, output_func: Callable[[str], None] = print):
        self.input_func = input_func
        self.output_func = output_func

    def __call__(
        self,
        pair_index: int,
        thickness_mm: float,
        candidates: List[WallTypeCatalogEntry],
    ) -> Optional[WallTypeCatalogEntry]:
        self.output_func(format_tie_message(pair_index, thickness_mm, candidates))

        while True:
            try:
                answer = self.input_func("Choose wall type [1/2, empty to skip]: ").strip()
            except EOFError:
                return None

            if answer == "":
                return None
            if answer in ("1", "2"):
                return candidates[int(answer) - 1]
            self.output_func("Please answer 1, 2 or press Enter to skip.")


def select_layer(
    layers: Sequence[str],
    input_func: InputFunc = input,
    output_func: Callable[[str], None] = print,
) -> Optional[str]:
    """
    Let the user pick a layer by number or name.

    Returns:
        Selected layer name, or None if the user cancelled
    """
    if not layers:
        return None

    output_func("Layers:")
    for i, name in enumerate(layers, start=1):
        output_func(f"  [{i}] {name}")

    while True:
        try:
            answer = input_func("Select wall layer (number or name, empty to cancel): ").strip()
        except EOFError:
            return None

        if answer == "":
            return None
        if answer in layers:
            return answer
        if answer.isdigit() and 1 <= int(answer) <= len(layers):
            return layers[int(answer) - 1]
        output_func(f"Unknown layer: {answer}")
