"""
Category Registry

Budget categories are validated identifiers, not free text. The registry
holds the built-in categories and any the user adds, plus categories
discovered in existing transactions and budgets.
"""

from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from finance_engine.errors import ValidationError
from finance_engine.models.records import Budget, Transaction, normalize_category


DEFAULT_ICON = "📝"


class CategoryInfo(BaseModel):
    """A category identifier with its display label and icon."""
    model_config = ConfigDict(frozen=True)

    value: str = Field(..., min_length=1, max_length=50)
    label: str
    icon: str = DEFAULT_ICON

    @field_validator('value')
    @classmethod
    def clean_value(cls, v: str) -> str:
        return normalize_category(v)


BUILTIN_CATEGORIES: tuple[CategoryInfo, ...] = (
    CategoryInfo(value="food", label="Food & Dining", icon="🍽️"),
    CategoryInfo(value="transportation", label="Transportation", icon="🚗"),
    CategoryInfo(value="bills", label="Bills & Utilities", icon="📄"),
    CategoryInfo(value="healthcare", label="Healthcare", icon="🏥"),
    CategoryInfo(value="housing", label="Housing", icon="🏠"),
    CategoryInfo(value="entertainment", label="Entertainment", icon="🎬"),
    CategoryInfo(value="shopping", label="Shopping", icon="🛍️"),
    CategoryInfo(value="dining", label="Dining Out", icon="🍷"),
    CategoryInfo(value="hobbies", label="Hobbies", icon="🎨"),
    CategoryInfo(value="cosmetics", label="Cosmetics", icon="💄"),
    CategoryInfo(value="savings", label="Savings", icon="💳"),
    CategoryInfo(value="investment", label="Investment", icon="📈"),
    CategoryInfo(value="emergency", label="Emergency Fund", icon="🛟"),
    CategoryInfo(value="debt", label="Debt Repayment", icon="💸"),
    CategoryInfo(value="education", label="Education", icon="📚"),
    CategoryInfo(value="loan", label="Loan", icon="🏛️"),
    CategoryInfo(value="other", label="Other", icon=DEFAULT_ICON),
)


def default_label(value: str) -> str:
    """'car_repairs' -> 'Car repairs'"""
    text = value.replace("_", " ")
    return text[:1].upper() + text[1:]


class CategoryRegistry:
    """
    Immutable set of known categories.

    register() and discover() return a new registry.
    """

    def __init__(self, categories: Iterable[CategoryInfo] = BUILTIN_CATEGORIES):
        self._categories: dict[str, CategoryInfo] = {}
        for info in categories:
            self._categories.setdefault(info.value, info)

    def __contains__(self, value: object) -> bool:
        return isinstance(value, str) and normalize_category(value) in self._categories

    def __len__(self) -> int:
        return len(self._categories)

    def get(self, value: str) -> Optional[CategoryInfo]:
        return self._categories.get(normalize_category(value))

    def icon_for(self, value: str) -> str:
        info = self.get(value)
        return info.icon if info else DEFAULT_ICON

    def values(self) -> list[str]:
        return [info.value for info in self.sorted()]

    def sorted(self) -> list[CategoryInfo]:
        """Categories ordered by label, as shown to the user."""
        return sorted(self._categories.values(), key=lambda info: info.label.lower())

    def require(self, value: str) -> CategoryInfo:
        """Look up a category, raising ValidationError for unknown ones."""
        info = self.get(value)
        if info is None:
            raise ValidationError("category", f"'{value}' is not a known category", value)
        return info

    def register(
        self,
        value: str,
        label: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> 'CategoryRegistry':
        """Add a user-defined category."""
        name = normalize_category(value)
        if not name:
            raise ValidationError("category", "cannot be blank", value)
        if name in self._categories:
            return self
        info = CategoryInfo(value=name, label=label or default_label(name), icon=icon or DEFAULT_ICON)
        return CategoryRegistry([*self._categories.values(), info])

    def discover(
        self,
        transactions: Iterable[Transaction] = (),
        budgets: Iterable[Budget] = (),
    ) -> 'CategoryRegistry':
        """Add the categories already used by transactions and budgets."""
        registry = self
        for record in [*transactions, *budgets]:
            registry = registry.register(record.category)
        return registry
