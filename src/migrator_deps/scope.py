"""Scope filtering and pagination of merged dependencies."""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TypeVar

from migrator_deps.aggregator import summarize
from migrator_deps.models import DependencySummary, MergedDependency, ScopeFilter

PAGE_SIZE = 20

T = TypeVar("T")


def filter_by_scope(
    merged: Sequence[MergedDependency],
    scope: ScopeFilter | str = ScopeFilter.ALL,
) -> list[MergedDependency]:
    """Keep entries matching `scope`, preserving their relative order.

    Raises:
        ValueError: If `scope` is not one of all/local/external.
    """
    scope = ScopeFilter(scope)
    if scope is ScopeFilter.LOCAL:
        return [d for d in merged if d.is_local]
    if scope is ScopeFilter.EXTERNAL:
        return [d for d in merged if not d.is_local]
    return list(merged)


def page_count(total: int, page_size: int = PAGE_SIZE) -> int:
    return math.ceil(total / page_size) if total > 0 else 0


def paginate(items: Sequence[T], page: int, page_size: int = PAGE_SIZE) -> list[T]:
    """Return the 1-based `page` of `items`.

    Out-of-range pages (including page < 1) give an empty list.
    """
    if page < 1:
        return []
    start = (page - 1) * page_size
    return list(items[start : start + page_size])


class DependencyView:
    """Filter and page state over a merged dependency list.

    Changing the scope always resets the current page to 1.
    """

    def __init__(
        self,
        merged: Sequence[MergedDependency],
        *,
        scope: ScopeFilter | str = ScopeFilter.ALL,
        page_size: int = PAGE_SIZE,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self.merged = list(merged)
        self.page_size = page_size
        self._scope = ScopeFilter(scope)
        self.page = 1

    @property
    def scope(self) -> ScopeFilter:
        return self._scope

    @scope.setter
    def scope(self, value: ScopeFilter | str) -> None:
        self._scope = ScopeFilter(value)
        self.page = 1

    @property
    def summary(self) -> DependencySummary:
        return summarize(self.merged)

    @property
    def filtered(self) -> list[MergedDependency]:
        return filter_by_scope(self.merged, self._scope)

    @property
    def page_count(self) -> int:
        return page_count(len(self.filtered), self.page_size)

    @property
    def items(self) -> list[MergedDependency]:
        return paginate(self.filtered, self.page, self.page_size)
