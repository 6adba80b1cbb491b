from config_defaults import *

# Local settings.  Changes to this file are meant for a local installation (and should not be
# committed to git).

# Example config overrides:
#backend = localdev_backend
#backend.sqlite_db = 'staking-database.db'
#backend.provider_url = 'https://base-sepolia.g.alchemy.com/v2/KEY'
#backend.tokens = [UNI_TOKEN, {**USDC_TOKEN, 'staking_address': '0x...'}]
