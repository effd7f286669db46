"""Translate list-endpoint query parameters into a structured store query."""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field as dataclass_field
from typing import Any

from taskapi.core.config import constants, settings
from taskapi.core.db_client import ASCENDING, DESCENDING, Filter, Sort
from taskapi.core.validation import (
    Check,
    FieldRule,
    Operation,
    RuleSet,
    is_bool_string,
    is_int_string,
    length_between,
    one_of,
    to_bool,
    to_int,
    trim,
)


logger = logging.getLogger(__name__)

SORT_ORDERS = ("asc", "desc")

# Largest value SQLite stores in an INTEGER column or binds as OFFSET
SQLITE_MAX_INTEGER = 2**63 - 1


@dataclass(frozen=True)
class ListQuery:
    """A validated, bounded query ready for the store."""

    filter: Filter
    sort: Sort
    skip: int
    limit: int
    page: int


@dataclass(frozen=True)
class ListQuerySpec:
    """Describes which query parameters a list endpoint accepts.

    Attributes:
        filter_rules: Rules for the exact-match filter parameters
        search_fields: Fields searched case-insensitively by ``search``
        sort_fields: Allow-list for ``sortBy``
        default_sort: Field sorted on when ``sortBy`` is omitted
        default_order: ``asc`` or ``desc`` when ``sortOrder`` is omitted
        flag_filters: Boolean parameters that expand into a compound predicate
            when true. Their predicates replace any equality filter on the
            same field.
    """

    filter_rules: tuple[FieldRule, ...] = ()
    search_fields: tuple[str, ...] = ()
    sort_fields: tuple[str, ...] = ("createdAt", "updatedAt")
    default_sort: str = "createdAt"
    default_order: str = "desc"
    flag_filters: Mapping[str, Callable[[], Filter]] = dataclass_field(default_factory=dict)

    @property
    def rule_set(self) -> RuleSet:
        return RuleSet(rules=(*self._common_rules(), *self.filter_rules, *self._flag_rules()))

    def _common_rules(self) -> tuple[FieldRule, ...]:
        max_limit = settings.max_page_size
        max_page = SQLITE_MAX_INTEGER // max_limit
        rules = [
            FieldRule(
                field="page",
                checks=(Check(is_int_string(minimum=1, maximum=max_page), f"Page must be between 1 and {max_page}"),),
                normalize=to_int,
                default=1,
            ),
            FieldRule(
                field="limit",
                checks=(Check(is_int_string(minimum=1, maximum=max_limit), f"Limit must be between 1 and {max_limit}"),),
                normalize=to_int,
                default=settings.default_page_size,
            ),
            FieldRule(
                field="sortBy",
                checks=(
                    Check(
                        one_of(self.sort_fields),
                        f"Sort field must be one of: {', '.join(self.sort_fields)}",
                    ),
                ),
                default=self.default_sort,
            ),
            FieldRule(
                field="sortOrder",
                checks=(Check(one_of(SORT_ORDERS), "Sort order must be asc or desc"),),
                default=self.default_order,
            ),
        ]
        if self.search_fields:
            rules.append(
                FieldRule(
                    field="search",
                    prepare=trim,
                    checks=(
                        Check(
                            length_between(1, constants.SEARCH_MAX_LENGTH),
                            f"Search query must be between 1 and {constants.SEARCH_MAX_LENGTH} characters",
                        ),
                    ),
                )
            )
        return tuple(rules)

    def _flag_rules(self) -> tuple[FieldRule, ...]:
        return tuple(
            FieldRule(
                field=name,
                checks=(Check(is_bool_string, f"{name} must be true or false"),),
                normalize=to_bool,
            )
            for name in self.flag_filters
        )


def build_list_query(params: Mapping[str, Any], list_spec: ListQuerySpec) -> ListQuery:
    """Validate query parameters and build ``{filter, sort, skip, limit}``.

    Raises:
        ValidationError: If any parameter is malformed
    """
    values = list_spec.rule_set.validate(params, Operation.QUERY)

    query_filter: Filter = {}
    for rule in list_spec.filter_rules:
        if rule.field in values:
            query_filter[rule.field] = values[rule.field]

    search = values.get("search")
    if search:
        query_filter["$or"] = [{field: {"$icontains": search}} for field in list_spec.search_fields]

    for name, build_predicate in list_spec.flag_filters.items():
        if values.get(name):
            predicate = build_predicate()
            overridden = sorted(set(query_filter) & set(predicate))
            if overridden:
                logger.info("Flag filter replaces explicit filters", extra={"flag": name, "fields": overridden})
            query_filter.update(predicate)

    page = values["page"]
    limit = values["limit"]
    direction = ASCENDING if values["sortOrder"] == "asc" else DESCENDING

    return ListQuery(
        filter=query_filter,
        sort=[(values["sortBy"], direction)],
        skip=(page - 1) * limit,
        limit=limit,
        page=page,
    )
