"""Format adapters: CSV import/export of plans and the exercise catalog."""
