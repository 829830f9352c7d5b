"""Integration tests for the remanso publisher.

These tests run the publish and sync commands end to end against a real
content directory (pytest ``tmp_path``) and an in-memory PDS. They cover
the behavior that spans modules: atUri write-back, state persistence
between runs, deletion detection and link repair.

Run only these tests with:
    pytest tests/integration -m integration
"""
