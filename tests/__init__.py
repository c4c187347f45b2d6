"""
updatectl Test Suite

- Unit tests for the models, configuration loader and settings
- Unit tests for each daemon component using a fake process runner
- Reconciliation and scheduler tests covering whole passes
- CLI tests through Typer's CliRunner
"""
