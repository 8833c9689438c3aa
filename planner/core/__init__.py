"""Core planner logic that does not touch I/O."""
