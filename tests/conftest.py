"""
Shared pytest fixtures for the passman test suite.

Autouse fixtures below keep tests fast and isolated:
  - Audit logger -> fresh instance per test (no file handler left behind)
  - Key derivation -> reduced scrypt cost (tests marked ``real_kdf`` opt out)
"""

import pytest


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "real_kdf: run with the shipped scrypt work factors"
    )


@pytest.fixture(autouse=True)
def _isolate_audit_logger():
    """Reset the global AuditLogger singleton for every test.

    Without this, a test that configures an audit directory leaves its
    file handler attached for every test that follows.
    """
    import passman.core.audit_log as audit_mod

    old_logger = audit_mod._audit_logger
    audit_mod._audit_logger = None

    yield

    if audit_mod._audit_logger is not None:
        audit_mod._audit_logger.close()
    audit_mod._audit_logger = old_logger


@pytest.fixture(autouse=True)
def _fast_kdf(request, monkeypatch):
    """Lower the scrypt cost so vault round trips take milliseconds.

    Vaults written under this fixture are only readable under it too,
    which is fine inside a single test.
    """
    if request.node.get_closest_marker("real_kdf"):
        return
    from passman.vault.encryption import KeyDeriver

    monkeypatch.setattr(KeyDeriver, "SCRYPT_N", 2 ** 10)


@pytest.fixture
def vault_path(tmp_path):
    return tmp_path / "vault.dat"
