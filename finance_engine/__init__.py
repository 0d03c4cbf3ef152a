"""
Finance Engine - Source Package

The computation core of a personal finance tracker: loan interest and
amortization math, payment allocation, savings-goal and budget progress,
and the 50/30/20 budget allocation planner.

DESIGN PRINCIPLES:
1. Records in, derived metrics out - nothing is mutated
2. Exact decimal arithmetic, rounding only at presentation
3. Fail early, fail visibly (no silent coercion to zero)
4. Conflicts block, they are never auto-resolved
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Engine Team"
