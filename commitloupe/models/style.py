"""Style rules — selector to class-list mapping enforced on engine markup."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class StyleRule(BaseModel):
    """Union ``class_list`` onto every element that ``selector`` matches.

    Applying a rule is idempotent and purely additive: classes already present
    are left alone and nothing is ever removed.
    """

    model_config = ConfigDict(frozen=True)

    selector: str
    class_list: tuple[str, ...]

    @field_validator("class_list")
    @classmethod
    def _no_blank_classes(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        for name in v:
            if not name or any(ch.isspace() for ch in name):
                raise ValueError(f"invalid class name: {name!r}")
        return v


# Engine markup -> Pure.css grid, buttons and tables.
DEFAULT_STYLE_RULES: tuple[StyleRule, ...] = (
    StyleRule(selector=".loupe-panels", class_list=("pure-g",)),
    StyleRule(selector=".loupe-container", class_list=("pure-u-1-3",)),
    StyleRule(selector=".loupe-button", class_list=("pure-button",)),
    StyleRule(
        selector=".loupe-commits-table",
        class_list=("pure-table", "pure-table-striped"),
    ),
)

DEFAULT_ROOT_SELECTOR = ".loupe-root"
