# =============================================================================
# HOOKRELAY - TEST PACKAGE
# =============================================================================
"""
Test Package

Test Structure:
    tests/
    ├── __init__.py          # This file
    ├── conftest.py          # Shared fixtures and request builders
    ├── test_signature.py    # HMAC sign/verify
    ├── test_emitter.py      # Listener registry
    ├── test_handler.py      # Request pipeline
    ├── test_server.py       # aiohttp middleware and server
    ├── test_config.py       # YAML and environment configuration
    └── test_monitoring.py   # Logging and metrics

Running Tests:
    pip install -e ".[test]"
    pytest tests/ -v
"""
