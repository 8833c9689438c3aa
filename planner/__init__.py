"""
Planner: the client-side editing and sync surface for workout plans.

- settings: environment-driven configuration
- core/: catalog resolution
- adapters/: CSV import/export
- services/: events, local backup, save scheduler, plan editor facade
- deps: adapters and editor wired from settings
- cli: command-line entry point
"""
