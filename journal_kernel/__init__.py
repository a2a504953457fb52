"""
Journal Kernel - automatic journal generation from reusable patterns.

A pattern is an ordered set of debit/credit lines, each bound to an account
code and an amount formula over named variables. The kernel:
- Parses and evaluates amount formulas in fixed-point decimal
- Collects and validates variable inputs, reporting every violation at once
- Assembles a draft journal entry from the evaluated lines
- Refuses to emit any entry whose debits and credits do not balance
"""

__version__ = "0.1.0"
