"""
Shared fixtures: three unrelated identities.
"""

import pytest

from secure_messenger.core_crypto.keys import KeyPair


@pytest.fixture
def alice() -> KeyPair:
    return KeyPair.generate()


@pytest.fixture
def bob() -> KeyPair:
    return KeyPair.generate()


@pytest.fixture
def carol() -> KeyPair:
    return KeyPair.generate()
