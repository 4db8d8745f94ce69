"""
BomTrack Test Suite

Tests are organized by layer:
- test_bom_*: engine calculations over in-memory snapshots
- test_bom_repository.py: snapshot loading and tenant scoping
- test_bom_api.py: HTTP endpoints
- test_config_and_cli.py: configuration, caching and CLI commands
"""
