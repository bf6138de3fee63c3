# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Structural loader turning Check YAML text into the document model.

The loader works on the composed YAML node graph rather than on plain
Python data so that every structural error can be reported with the line
and column of the offending node, and so that duplicate mapping keys are
detected instead of silently overwritten.

Loading is purely structural. Expression strings are kept verbatim and
conditions that belong to lint rules (empty expectations, duplicate names,
expectations without an expression field, unknown providers) are never
rejected here.
"""

from __future__ import annotations

import yaml
from pydantic import ValidationError
from yaml.constructor import SafeConstructor
from yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

from checklint.model.check import (
    EXPRESSION_FIELDS,
    MESSAGE_FIELDS,
    Check,
    ConditionValue,
    Expectation,
    Fact,
    ListValue,
    Metadata,
    Scalar,
    ScalarValue,
    Value,
    ValueCondition,
)

# ###############
# Public Interface
# ###############


class ParseError(Exception):
    """Raised when a Check document is structurally invalid.

    Attributes:
        line: 1-based line number of the error.
        column: 1-based column number of the error.
    """

    def __init__(self, message: str, line: int, column: int) -> None:
        super().__init__(f"Line {line}, column {column}: {message}")
        self.reason = message
        self.line = line
        self.column = column


def load_check(text: str | bytes, *, strict: bool = True) -> Check:
    """Load a Check from YAML text.

    Args:
        text: The document as text, or as UTF-8 encoded bytes.
        strict: When True, mapping keys that are not part of the Check schema
            are rejected.

    Returns:
        The parsed :class:`~checklint.model.check.Check`.

    Raises:
        ParseError: On invalid YAML, a missing required field, a field of the
            wrong type, a duplicate key, or (in strict mode) an unknown field.
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"Document is not valid UTF-8: {exc.reason}", 1, 1) from exc
    try:
        root = yaml.compose(text, Loader=yaml.SafeLoader)
    except yaml.MarkedYAMLError as exc:
        mark = exc.problem_mark or exc.context_mark
        line, column = (mark.line + 1, mark.column + 1) if mark is not None else (1, 1)
        raise ParseError(f"Invalid YAML: {exc.problem or exc}", line, column) from exc
    except yaml.YAMLError as exc:
        raise ParseError(f"Invalid YAML: {exc}", 1, 1) from exc
    if root is None:
        raise ParseError("Document is empty", 1, 1)
    return _Loader(strict).load(root)


# ################
# Implementation
# ################

_CHECK_FIELDS = frozenset(
    {
        "id",
        "name",
        "group",
        "description",
        "remediation",
        "metadata",
        "facts",
        "values",
        "expectations",
        "premium",
    }
)
_METADATA_FIELDS = frozenset({"target_type", "provider"})
_FACT_FIELDS = frozenset({"name", "gatherer", "argument"})
_VALUE_FIELDS = frozenset({"name", "default", "conditions"})
_CONDITION_FIELDS = frozenset({"value", "when"})
_EXPECTATION_FIELDS = frozenset({"name", *EXPRESSION_FIELDS, *MESSAGE_FIELDS})


def _position(node: Node) -> tuple[int, int]:
    return node.start_mark.line + 1, node.start_mark.column + 1


def _error(node: Node, message: str) -> ParseError:
    line, column = _position(node)
    return ParseError(message, line, column)


def _kind(node: Node) -> str:
    if isinstance(node, MappingNode):
        return "a mapping"
    if isinstance(node, SequenceNode):
        return "a list"
    return "a scalar"


class _Loader:
    """Walks a composed YAML node graph and builds the Check model."""

    def __init__(self, strict: bool) -> None:
        self._strict = strict
        self._constructor = SafeConstructor()

    def load(self, root: Node) -> Check:
        fields = self._mapping(root, "check", _CHECK_FIELDS)
        check_id = self._string(fields, root, "id", "check")
        location = f"check '{check_id}'"
        data: dict[str, object] = {
            "id": check_id,
            "name": self._string(fields, root, "name", location),
            "group": self._string(fields, root, "group", location),
            "description": self._string(fields, root, "description", location),
            "remediation": self._string(fields, root, "remediation", location),
            "facts": [self._fact(node, i) for i, node in enumerate(self._list(fields, root, "facts", location))],
            "values": [
                self._value(node, i)
                for i, node in enumerate(self._list(fields, root, "values", location, required=False))
            ],
            "expectations": [
                self._expectation(node, i)
                for i, node in enumerate(self._list(fields, root, "expectations", location, required=False))
            ],
        }
        if "metadata" in fields:
            data["metadata"] = self._metadata(fields["metadata"])
        if "premium" in fields:
            data["premium"] = self._boolean(fields["premium"], "premium")
        try:
            return Check.model_validate(data)
        except ValidationError as exc:
            raise _error(root, f"Invalid check: {exc}") from exc

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _metadata(self, node: Node) -> Metadata:
        fields = self._mapping(node, "metadata", _METADATA_FIELDS)
        target_type = None
        if "target_type" in fields:
            target_type = self._string(fields, node, "target_type", "metadata")
        providers: list[str] = []
        if "provider" in fields:
            provider_node = fields["provider"]
            # A single provider may be written without list syntax.
            if isinstance(provider_node, ScalarNode):
                providers = [self._string(fields, node, "provider", "metadata")]
            else:
                for i, item in enumerate(self._list(fields, node, "provider", "metadata")):
                    providers.append(self._scalar_string(item, f"metadata.provider[{i}]"))
        return Metadata(target_type=target_type, provider=providers)

    def _fact(self, node: Node, index: int) -> Fact:
        location = f"facts[{index}]"
        fields = self._mapping(node, location, _FACT_FIELDS)
        return Fact(
            name=self._string(fields, node, "name", location),
            gatherer=self._string(fields, node, "gatherer", location),
            argument=self._string(fields, node, "argument", location),
        )

    def _value(self, node: Node, index: int) -> Value:
        location = f"values[{index}]"
        fields = self._mapping(node, location, _VALUE_FIELDS)
        name = self._string(fields, node, "name", location)
        if "default" not in fields:
            raise _error(node, f"{location}: missing required field 'default'")
        default = self._condition_value(fields["default"], f"values.{name}.default")
        conditions = [
            self._condition(item, f"values.{name}.conditions[{i}]")
            for i, item in enumerate(self._list(fields, node, "conditions", location, required=False))
        ]
        return Value(name=name, default=default, conditions=conditions)

    def _condition(self, node: Node, location: str) -> ValueCondition:
        fields = self._mapping(node, location, _CONDITION_FIELDS)
        if "value" not in fields:
            raise _error(node, f"{location}: missing required field 'value'")
        value = self._condition_value(fields["value"], f"{location}.value")
        when = self._string(fields, node, "when", location)
        return ValueCondition(value=value, when=when)

    def _expectation(self, node: Node, index: int) -> Expectation:
        location = f"expectations[{index}]"
        fields = self._mapping(node, location, _EXPECTATION_FIELDS)
        name = self._string(fields, node, "name", location)
        texts = {
            key: self._scalar_string(fields[key], f"{location}: '{key}'")
            for key in (*EXPRESSION_FIELDS, *MESSAGE_FIELDS)
            if key in fields
        }
        return Expectation(name=name, **texts)

    def _condition_value(self, node: Node, location: str) -> ConditionValue:
        if isinstance(node, SequenceNode):
            return ListValue(items=[self._scalar(item, f"{location}[{i}]") for i, item in enumerate(node.value)])
        return ScalarValue(value=self._scalar(node, location))

    # ------------------------------------------------------------------
    # Node helpers
    # ------------------------------------------------------------------

    def _mapping(self, node: Node, location: str, allowed: frozenset[str]) -> dict[str, Node]:
        """Return the key/value nodes of a mapping, rejecting duplicates and unknown keys."""
        if not isinstance(node, MappingNode):
            raise _error(node, f"{location} must be a mapping, got {_kind(node)}")
        result: dict[str, Node] = {}
        for key_node, value_node in node.value:
            if not isinstance(key_node, ScalarNode):
                raise _error(key_node, f"{location}: keys must be scalars")
            key = str(key_node.value)
            if key in result:
                raise _error(key_node, f"{location}: duplicate key '{key}'")
            if self._strict and key not in allowed:
                raise _error(key_node, f"{location}: unknown field '{key}'")
            result[key] = value_node
        return result

    def _string(self, fields: dict[str, Node], parent: Node, key: str, location: str) -> str:
        """Extract a required string field, raising ParseError if missing or mistyped."""
        if key not in fields:
            raise _error(parent, f"{location}: missing required field '{key}'")
        return self._scalar_string(fields[key], f"{location}: '{key}'")

    def _scalar_string(self, node: Node, location: str) -> str:
        value = self._scalar(node, location)
        if not isinstance(value, str):
            raise _error(node, f"{location} must be a string, got {type(value).__name__}")
        return value

    def _boolean(self, node: Node, location: str) -> bool:
        value = self._scalar(node, location)
        if not isinstance(value, bool):
            raise _error(node, f"{location} must be a boolean")
        return value

    def _scalar(self, node: Node, location: str) -> Scalar:
        if not isinstance(node, ScalarNode):
            raise _error(node, f"{location} must be a scalar, got {_kind(node)}")
        value = self._constructor.construct_object(node)
        if not isinstance(value, (str, int, float, bool)):
            raise _error(node, f"{location} must be a string, number, or boolean")
        return value

    def _list(
        self,
        fields: dict[str, Node],
        parent: Node,
        key: str,
        location: str,
        *,
        required: bool = True,
    ) -> list[Node]:
        if key not in fields:
            if required:
                raise _error(parent, f"{location}: missing required field '{key}'")
            return []
        node = fields[key]
        if isinstance(node, ScalarNode) and node.tag == "tag:yaml.org,2002:null" and not required:
            return []
        if not isinstance(node, SequenceNode):
            raise _error(node, f"{location}: '{key}' must be a list, got {_kind(node)}")
        return list(node.value)
