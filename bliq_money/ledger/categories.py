"""
Category Registry

The ordered list of user-defined categories, shared by all months.
"""

from typing import Iterator, Optional

from pydantic import ValidationError as PydanticValidationError

from bliq_money.ledger.errors import ValidationError
from bliq_money.models.ledger import (
    DEFAULT_CATEGORY_COLOR,
    DEFAULT_CATEGORY_ICON,
    Category,
    new_id,
)


class CategoryRegistry:
    """
    Add/remove access to the ledger's category list.

    DESIGN DECISION: Removing a category never touches transactions.
    They reference categories by name, so a removed one just becomes
    an orphaned string on the transactions that used it.
    """

    def __init__(self, categories: list[Category]):
        self._categories = categories

    def __iter__(self) -> Iterator[Category]:
        return iter(self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    def get(self, category_id: str) -> Optional[Category]:
        for category in self._categories:
            if category.id == category_id:
                return category
        return None

    def names(self) -> list[str]:
        return [category.name for category in self._categories]

    def add(
        self,
        name: str,
        icon: str = DEFAULT_CATEGORY_ICON,
        color: str = DEFAULT_CATEGORY_COLOR,
    ) -> Category:
        """
        Append a new category.

        Raises:
            ValidationError: If the name is empty or blank

        Duplicate names are allowed.
        """
        if not name or not name.strip():
            raise ValidationError.single("name", "missing", "Category name is required")
        try:
            category = Category(id=new_id(), name=name, icon=icon, color=color)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, "category") from e
        self._categories.append(category)
        return category

    def remove(self, category_id: str) -> bool:
        """Remove a category by id. Returns False if there was none."""
        for index, category in enumerate(self._categories):
            if category.id == category_id:
                del self._categories[index]
                return True
        return False
