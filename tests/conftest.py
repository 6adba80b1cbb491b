"""
Pytest configuration and shared fixtures for the staking backend tests.
"""
import os
import tempfile

import pytest

import config

# Importing `staking` builds the module level app from `config.backend`; keep its database out of
# the working tree.
config.backend.sqlite_db = os.path.join(tempfile.mkdtemp(prefix="staking-tests-"), "staking.db")

from contracts.staking_pool import ChainReadError, StakingSnapshot
from reconcile              import Reconciler
from registry               import load_registry
from store                  import StakingStore

UNI_TOKEN_ADDRESS    = "0x00000000000000000000000000000000000000AA"
UNI_STAKING_ADDRESS  = "0x00000000000000000000000000000000000000bb"
USDC_TOKEN_ADDRESS   = "0x00000000000000000000000000000000000000cc"
USDC_STAKING_ADDRESS = "0x00000000000000000000000000000000000000dd"

UNI = {
    "token_key": "UNI",
    "token_address": UNI_TOKEN_ADDRESS,
    "staking_address": UNI_STAKING_ADDRESS,
    "decimals": 18,
    "token_name": "UNI",
    "project_name": "Uniswap V3",
    "chain": "Base Sepolia",
    "is_stablecoin": False,
    "categories": ["Staking"],
    "logo_url": "https://cryptologos.cc/logos/uniswap-uni-logo.png",
}

USDC = {
    "token_key": "USDC",
    "token_address": USDC_TOKEN_ADDRESS,
    "staking_address": USDC_STAKING_ADDRESS,
    "decimals": 6,
    "token_name": "USDC",
    "project_name": "AAVE V3",
    "chain": "Base Sepolia",
    "is_stablecoin": True,
    "categories": ["Staking", "Stablecoin"],
    "logo_url": "https://cryptologos.cc/logos/usd-coin-usdc-logo.png",
}


class FakeReader:
    """
    Stand-in for `StakingPoolReader`.  `snapshots` maps staking address (any case) to either a
    `(apy, total_staked)` pair or an exception instance to raise.
    """

    def __init__(self, snapshots=None):
        self.snapshots = {}
        self.calls = []
        for address, value in (snapshots or {}).items():
            self.set(address, value)

    def set(self, address, value):
        self.snapshots[address.lower()] = value

    def read_staking_snapshot(self, contract_address):
        self.calls.append(contract_address)
        value = self.snapshots.get(contract_address.lower())
        if value is None:
            raise ChainReadError(contract_address, "execution reverted")
        if isinstance(value, Exception):
            raise value
        apy, total_staked = value
        return StakingSnapshot(apy_raw=apy, total_staked_raw=total_staked)


class FakeClock:
    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        self.now += 1
        return self.now


@pytest.fixture
def registry():
    return load_registry([UNI, USDC])


@pytest.fixture
def store(tmp_path):
    return StakingStore(str(tmp_path / "staking.db"))


@pytest.fixture
def reader():
    return FakeReader()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def reconciler(registry, reader, store, clock):
    return Reconciler(registry, reader, store, clock=clock)
