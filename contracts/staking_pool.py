from   typing      import NamedTuple
from   web3        import Web3
from   abi_manager import ABIManager

class ChainReadError(Exception):
    """Reading a staking contract failed: bad address, RPC failure or a reverted call."""
    def __init__(self, contract_address, reason):
        super().__init__(f"Failed to read staking contract {contract_address}: {reason}")
        self.contract_address = contract_address

class StakingSnapshot(NamedTuple):
    apy_raw:          int # Integer percentage, e.g. 5 for 5%
    total_staked_raw: int # Atomic units of the staked asset

class StakingPoolReader:
    """ Read-only access to StakingPool contracts on a single chain. """

    def __init__(self, provider_url: str, request_timeout: float = 30):
        """
        Initialize the connection to the Ethereum provider and load the StakingPool ABI.
        :param provider_url: URL of the Ethereum node to connect to.
        :param request_timeout: Seconds before an individual RPC request is abandoned.
        """
        self.web3 = Web3(Web3.HTTPProvider(provider_url, request_kwargs={'timeout': request_timeout}))
        manager   = ABIManager()
        self.abi  = manager.load_abi('StakingPool')

    def get_contract_instance(self, contract_address: str):
        """
        Create an instance of a staking contract at a given address.
        :param contract_address: Address of the contract to interact with.
        :return: Web3 Contract object.
        """
        return self.web3.eth.contract(address=Web3.to_checksum_address(contract_address), abi=self.abi)

    def read_staking_snapshot(self, contract_address: str) -> StakingSnapshot:
        """
        Query `fixedAPY()` and `totalAmountStaked()` from the staking contract.
        :param contract_address: Address of the staking contract.
        :return: The raw (unscaled) values returned by the contract.
        :raises ChainReadError: on any failure to produce both values.
        """
        try:
            contract     = self.get_contract_instance(contract_address)
            apy          = contract.functions.fixedAPY().call()
            total_staked = contract.functions.totalAmountStaked().call()
        except Exception as e:
            raise ChainReadError(contract_address, e) from e

        return StakingSnapshot(apy_raw=int(apy), total_staked_raw=int(total_staked))
