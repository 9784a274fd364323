"""
Via SDK Test Configuration

Shared fixtures and test utilities.
"""

import pytest
from unittest.mock import Mock
from pathlib import Path
import sys

# Ensure via_sdk is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from via_sdk.models import Fee, UTXO


# =============================================================================
# Mock Fixtures
# =============================================================================

@pytest.fixture
def sample_fee():
    """Fee quote returned by the mocked L2 node."""
    return Fee(
        gas_limit=1_000_000,
        max_fee_per_gas=250_000_000,
        max_priority_fee_per_gas=0,
        gas_per_pubdata_limit=50_000,
    )


@pytest.fixture
def mock_provider(sample_fee):
    """Mock L2Provider for isolated testing."""
    provider = Mock()
    provider.estimate_fee.return_value = sample_fee
    provider.get_chain_id.return_value = 270
    provider.get_transaction_count.return_value = 7
    provider.get_code.return_value = b""
    provider.send_raw_transaction.return_value = "0x" + "ab" * 32
    return provider


@pytest.fixture
def mock_rpc():
    """Mock BitcoinRPC for isolated testing."""
    rpc = Mock()
    rpc.list_unspent.return_value = []
    rpc.send_raw_transaction.return_value = "b" * 64
    rpc.estimate_smart_fee.return_value = {}
    return rpc


@pytest.fixture
def sample_utxo():
    """Sample UTXO for testing."""
    return UTXO(
        txid="a" * 64,
        vout=0,
        value=100000
    )


# =============================================================================
# Test Keys (DO NOT USE IN PRODUCTION)
# =============================================================================

@pytest.fixture
def test_private_key():
    """Test private key - DO NOT USE IN PRODUCTION."""
    return "0000000000000000000000000000000000000000000000000000000000000001"


@pytest.fixture
def test_public_key():
    """Compressed public key for test_private_key (the generator point)."""
    return "0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"


@pytest.fixture
def l2_private_key():
    """L2 test account key - DO NOT USE IN PRODUCTION."""
    return "0x" + "11" * 32


@pytest.fixture
def key_manager(test_private_key):
    from via_sdk.infra.keys import KeyManager

    return KeyManager.from_secret(test_private_key)


# =============================================================================
# Marker Helpers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (mocked services)")
    config.addinivalue_line("markers", "security: Security-focused tests")
