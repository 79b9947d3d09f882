"""Backtesting module — historical simulation of investment spending policies.

Replays a date-ordered price series through a spending strategy and
summarizes the purchases it made into percentage and annualized returns.
"""

from __future__ import annotations
