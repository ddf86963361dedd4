"""
Pytest Configuration and Fixtures
"""

import os
import sys
import pytest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), 'src'))

from sshalgo.algorithms import AlgorithmVariant
from sshalgo.keys import generate_key_pair


@pytest.fixture(scope="session")
def key_pairs():
    """One freshly generated key pair per variant, shared by the session."""
    return {variant: generate_key_pair(variant) for variant in AlgorithmVariant}


@pytest.fixture
def message():
    """Fixed message to sign."""
    return b"SSH_MSG_USERAUTH_REQUEST test payload"


@pytest.fixture
def clean_key_size_env(monkeypatch):
    """Remove key size overrides from the environment."""
    monkeypatch.delenv("SSHALGO_RSA_KEY_SIZE", raising=False)
    monkeypatch.delenv("SSHALGO_DSA_KEY_SIZE", raising=False)
    return monkeypatch
