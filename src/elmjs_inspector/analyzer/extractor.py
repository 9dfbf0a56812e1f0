"""Extract named top-level definitions from a compiled program.

The compiler output under analysis wraps every top-level declaration inside
one immediately invoked function, e.g.::

    (function(scope){
    'use strict';
    function F(arity, fun, wrapper) { ... }
    var $elm$core$Basics$identity = function (x) { return x; };
    ...
    }(this));

Only the direct statements of that function body are considered.
"""

import logging
import re
from typing import Any, Callable, Iterator, Optional

from .models import Definition
from .parser import ParsedProgram

logger = logging.getLogger(__name__)

RelevancePredicate = Callable[[str], bool]

FUNCTION_LITERAL_TYPES = {"function_expression", "function"}
FUNCTION_DECLARATION_TYPES = {"function_declaration", "generator_function_declaration"}
VARIABLE_DECLARATION_TYPES = {"variable_declaration", "lexical_declaration"}


def marker_predicate(marker: str) -> RelevancePredicate:
    """Keep names containing ``marker`` (Elm qualifies package names with ``$``)."""
    return lambda name: marker in name


def pattern_predicate(pattern: str) -> RelevancePredicate:
    """Keep names matching a regular expression anywhere."""
    compiled = re.compile(pattern)
    return lambda name: compiled.search(name) is not None


def _unwrap_parentheses(node: Any) -> Any:
    while node is not None and node.type == "parenthesized_expression":
        children = node.named_children
        node = children[0] if children else None
    return node


def _initializer_body(statement: Any) -> Optional[Any]:
    """Get the statement block of an immediately invoked function literal.

    Args:
        statement: Top-level statement node

    Returns:
        The function's ``statement_block`` node, or None if the statement
        is not an enclosing initializer
    """
    if statement.type != "expression_statement" or not statement.named_children:
        return None

    call = _unwrap_parentheses(statement.named_children[0])
    if call is None or call.type != "call_expression":
        return None

    callee = _unwrap_parentheses(call.child_by_field_name("function"))
    if callee is None or callee.type not in FUNCTION_LITERAL_TYPES:
        return None

    return callee.child_by_field_name("body")


def iter_initializer_statements(program: ParsedProgram) -> Iterator[Any]:
    """Yield the direct statements of every enclosing initializer."""
    for statement in program.root.named_children:
        body = _initializer_body(statement)
        if body is not None:
            yield from body.named_children


def _function_definitions(program: ParsedProgram, statement: Any) -> Iterator[Definition]:
    if statement.type not in FUNCTION_DECLARATION_TYPES:
        return
    name_node = statement.child_by_field_name("name")
    if name_node is None:
        return
    start, end = program.node_range(statement)
    yield Definition(name=program.node_text(name_node), start=start, end=end, kind="function")


def _variable_definitions(program: ParsedProgram, statement: Any) -> Iterator[Definition]:
    if statement.type not in VARIABLE_DECLARATION_TYPES:
        return
    for declarator in statement.named_children:
        if declarator.type != "variable_declarator":
            continue
        name_node = declarator.child_by_field_name("name")
        # Destructuring patterns bind no single name
        if name_node is None or name_node.type != "identifier":
            continue
        start, end = program.node_range(declarator)
        yield Definition(name=program.node_text(name_node), start=start, end=end, kind="variable")


def extract_definitions(
    program: ParsedProgram, relevance: Optional[RelevancePredicate] = None
) -> Iterator[Definition]:
    """Yield named top-level definitions in source order.

    Args:
        program: Parsed unminified program
        relevance: Predicate on definition names; definitions failing it are
            skipped (None keeps everything)

    Returns:
        Iterator of definitions; empty when no enclosing initializer exists
    """
    found = 0
    for statement in iter_initializer_statements(program):
        for definition in _function_definitions(program, statement):
            if relevance is None or relevance(definition.name):
                found += 1
                yield definition
        for definition in _variable_definitions(program, statement):
            if relevance is None or relevance(definition.name):
                found += 1
                yield definition

    if not found:
        logger.info("No top-level definitions found inside an enclosing initializer")
