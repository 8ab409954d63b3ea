"""
Selection planner - merges a selection set into ordered field groups.

For a given runtime object type the planner:
- flattens inline fragments and fragment spreads whose type condition applies
- honours @skip / @include
- groups field nodes by response key (alias or name), in first-seen order

Sub-selections of merged fields are collected once per (type, field group)
and cached for the lifetime of the operation.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..core.defs import ObjectType
from ..core.query_types import (
    FieldNode,
    FragmentDefinition,
    FragmentSpreadNode,
    InlineFragmentNode,
)
from ..core.registry import SchemaRegistry
from ..core.values import get_directive_values

# response key -> field nodes sharing that key
FieldGroups = dict[str, list[FieldNode]]


class SelectionPlanner:
    """
    Collects fields for execution.

    Usage:
        planner = SelectionPlanner(schema, fragments, variables)
        groups = planner.collect_fields(query_type, operation.selection_set)
    """

    def __init__(
        self,
        schema: SchemaRegistry,
        fragments: Mapping[str, FragmentDefinition],
        variables: Mapping[str, Any],
    ):
        self.schema = schema
        self.fragments = fragments
        self.variables = variables
        self._subfield_cache: dict[tuple[str, tuple[int, ...]], FieldGroups] = {}

    def collect_fields(self, runtime_type: ObjectType, selection_set: list[Any]) -> FieldGroups:
        """Field groups of one selection set for a concrete object type."""
        groups: FieldGroups = {}
        self._collect(runtime_type, selection_set, groups, set())
        return groups

    def collect_subfields(self, runtime_type: ObjectType, field_nodes: list[FieldNode]) -> FieldGroups:
        """Merge the sub-selections of every node in a field group."""
        cache_key = (runtime_type.name, tuple(id(node) for node in field_nodes))
        groups = self._subfield_cache.get(cache_key)
        if groups is None:
            groups = {}
            visited: set[str] = set()
            for node in field_nodes:
                if node.selection_set:
                    self._collect(runtime_type, node.selection_set, groups, visited)
            self._subfield_cache[cache_key] = groups
        return groups

    def _collect(
        self,
        runtime_type: ObjectType,
        selection_set: list[Any],
        groups: FieldGroups,
        visited_fragments: set[str],
    ):
        for selection in selection_set:
            if not self.should_include(selection):
                continue

            if isinstance(selection, FieldNode):
                groups.setdefault(selection.response_key, []).append(selection)

            elif isinstance(selection, InlineFragmentNode):
                if not self.does_fragment_apply(selection.type_condition, runtime_type):
                    continue
                self._collect(runtime_type, selection.selection_set, groups, visited_fragments)

            elif isinstance(selection, FragmentSpreadNode):
                name = selection.name
                if name in visited_fragments:
                    continue
                visited_fragments.add(name)
                fragment = self.fragments.get(name)
                if fragment is None or not self.does_fragment_apply(
                    fragment.type_condition, runtime_type
                ):
                    continue
                self._collect(runtime_type, fragment.selection_set, groups, visited_fragments)

    def should_include(self, node: Any) -> bool:
        """Evaluate @skip(if:) and @include(if:)."""
        directives = getattr(node, "directives", None)
        if not directives:
            return True
        skip = get_directive_values("skip", directives, self.variables)
        if skip and skip.get("if") is True:
            return False
        include = get_directive_values("include", directives, self.variables)
        if include and include.get("if") is False:
            return False
        return True

    def does_fragment_apply(self, type_condition: Optional[str], runtime_type: ObjectType) -> bool:
        """
        A fragment applies when it has no condition, names the runtime type,
        or names an interface/union the runtime type belongs to.
        """
        if not type_condition:
            return True
        if type_condition == runtime_type.name:
            return True
        conditional_type = self.schema.get_type(type_condition)
        if conditional_type is None:
            return False
        return self.schema.is_possible_type(conditional_type, runtime_type)
