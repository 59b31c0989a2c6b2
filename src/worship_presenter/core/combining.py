"""Combined slides for original-language-only display.

In original-only mode two consecutive slides of the same section are shown
together, halving how often the operator has to advance. Slides are paired
two at a time inside each run of equal, non-empty ``verse_type``; an odd
slide at the end of a run (or any slide without a verse type) stays single.
"""

from dataclasses import dataclass, field

from worship_presenter.core.models import Slide


@dataclass(frozen=True)
class CombinedSlide:
    """One navigable unit in original-only mode.

    Attributes:
        original_indices: Indices of the underlying slides (one or two)
        verse_type: Shared verse type ("" for untyped slides)
    """

    original_indices: tuple[int, ...]
    verse_type: str = ""

    @property
    def is_combined(self) -> bool:
        """Whether this unit pairs two slides."""
        return len(self.original_indices) > 1

    @property
    def first_index(self) -> int:
        """Index of the first underlying slide."""
        return self.original_indices[0]

    @property
    def label(self) -> str:
        """Display label such as "Verse1 1-2" or "3"."""
        first, last = self.original_indices[0] + 1, self.original_indices[-1] + 1
        numbers = f"{first}-{last}" if self.is_combined else str(first)
        if self.verse_type:
            return f"{self.verse_type[0].upper()}{self.verse_type[1:]} {numbers}"
        return numbers


@dataclass
class CombinedSlideMap:
    """Combined units plus lookups in both directions."""

    combined_slides: list[CombinedSlide] = field(default_factory=list)
    original_to_combined: dict[int, int] = field(default_factory=dict)
    combined_to_original: dict[int, list[int]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.combined_slides)


def create_combined_slides(slides: list[Slide]) -> CombinedSlideMap:
    """Pair consecutive slides that share a verse type.

    Args:
        slides: Slides of the current song

    Returns:
        CombinedSlideMap describing the navigable units
    """
    result = CombinedSlideMap()

    def add_unit(indices: tuple[int, ...], verse_type: str) -> None:
        combined_index = len(result.combined_slides)
        result.combined_slides.append(CombinedSlide(original_indices=indices, verse_type=verse_type))
        result.combined_to_original[combined_index] = list(indices)
        for index in indices:
            result.original_to_combined[index] = combined_index

    i = 0
    while i < len(slides):
        verse_type = slides[i].verse_type or ""

        if not verse_type:
            add_unit((i,), "")
            i += 1
            continue

        group_end = i
        while group_end < len(slides) and (slides[group_end].verse_type or "") == verse_type:
            group_end += 1

        j = i
        while j < group_end:
            if j + 1 < group_end:
                add_unit((j, j + 1), verse_type)
                j += 2
            else:
                add_unit((j,), verse_type)
                j += 1

        i = group_end

    return result
