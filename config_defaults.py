# Default configuration options for the staking snapshot backend.
#
# To override settings add `backend.whatever = ...` into `config.py`; this file should not be
# modified and simply contains the default values.
#
# Each `Backend` instance describes one deployment (a chain endpoint plus the set of tokens whose
# staking contracts we read from it).  `backend` at the bottom selects the active one.
import logging

# Token registry entries.  Every entry must declare `decimals`: the precision of the staked asset,
# used to scale `totalAmountStaked()` into human readable units.  There is no global default.
UNI_TOKEN = {
    'token_key':       'UNI',
    'token_address':   '0xc418dab8482e4e5c31d861fdd2461e8f2f88d5ae',
    'staking_address': '0xe3f42d10a7b3126c0121859afe19891a5bbb686d',
    'decimals':        18,
    'token_name':      'UNI',
    'project_name':    'Uniswap V3',
    'chain':           'Base Sepolia',
    'is_stablecoin':   False,
    'categories':      ['Staking'],
    'logo_url':        'https://cryptologos.cc/logos/uniswap-uni-logo.png',
}

USDC_TOKEN = {
    'token_key':       'USDC',
    'token_address':   '0xaca31a7e4d867f5c3180f401390dcf2d462b06b9',
    'staking_address': '0x9232ca7b6b21a9e2782a5d21a82030c2799b374a',
    'decimals':        6,
    'token_name':      'USDC',
    'project_name':    'AAVE V3',
    'chain':           'Base Sepolia',
    'is_stablecoin':   True,
    'categories':      ['Staking', 'Stablecoin'],
    'logo_url':        'https://cryptologos.cc/logos/usd-coin-usdc-logo.png',
}

class Backend:
    sqlite_db:               str   = 'staking-backend.db'
    provider_url:            str   = 'http://localhost:8545' # Default hardhat private chain node address
    request_timeout:         float = 30    # Seconds before a single RPC call is abandoned
    slow_cycle_seconds:      float = 60    # Reconciliation cycles slower than this are logged as warnings
    tokens:                  tuple = () # Deployments assign their own list
    log_level                      = logging.INFO

# Base Sepolia testnet contracts
base_sepolia_backend                     = Backend()
base_sepolia_backend.sqlite_db           = 'staking-base-sepolia.db'
base_sepolia_backend.provider_url        = 'https://sepolia.base.org'
base_sepolia_backend.tokens              = [UNI_TOKEN, USDC_TOKEN]

# Local hardhat node; contract addresses have to be filled in from the local deployment.
localdev_backend                         = Backend()
localdev_backend.sqlite_db               = 'staking-localdev.db'
localdev_backend.log_level               = logging.DEBUG

# Assign the active backend to be used by the staking backend
backend                                  = base_sepolia_backend
