"""
Core package: scoring engine, cache and store adapters.

  warmth             - warmth classification and write-back
  action_prioritizer - today's recommended actions
  network_scores     - strength, momentum, weekly summary, badges
  cache              - read-through cache and local snapshot
  store              - SQLite and hosted backend adapters
"""
