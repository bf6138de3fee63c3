# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Front end of the linter: document loading, expression indexing, and reference resolution."""

from checklint.compiler.index import ExpressionIndex, ExpressionSite
from checklint.compiler.loader import ParseError, load_check
from checklint.compiler.resolver import DEFAULT_ENV_IDENTIFIERS, Resolver

__all__ = [
    "load_check",
    "ParseError",
    "ExpressionIndex",
    "ExpressionSite",
    "Resolver",
    "DEFAULT_ENV_IDENTIFIERS",
]
