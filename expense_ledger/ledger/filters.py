"""Category filter selection."""

from typing import Optional


class FilterSelection:
    """
    Two states: unfiltered, or filtered by one category.

    Selecting the active category again turns the filter off, so a
    category chip behaves like a toggle.
    """

    def __init__(self):
        self._category: Optional[str] = None

    @property
    def category(self) -> Optional[str]:
        """Active category, or None when unfiltered."""
        return self._category

    @property
    def is_filtered(self) -> bool:
        return self._category is not None

    def set_filter(self, category: Optional[str]) -> Optional[str]:
        """Apply a selection and return the resulting active category."""
        if category is None or category == self._category:
            self._category = None
        else:
            self._category = category
        return self._category

    def reset(self) -> None:
        self._category = None
