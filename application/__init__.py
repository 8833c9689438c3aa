"""
Application Layer for the workout plan sync engine.

This package contains:
- ports/: Abstract repository interfaces (what the engine needs)
- use_cases/: Save (optimistic concurrency) and load (crash recovery)
- exceptions: The sync error taxonomy
"""
