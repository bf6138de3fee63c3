# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Validation engine for declarative cluster-health Check documents."""

from checklint.api import alint, lint

__all__ = ["alint", "lint"]
