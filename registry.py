import eth_utils

from eth_typing import ChecksumAddress
from typing     import NamedTuple, Iterable

class RegistryError(ValueError):
    """The configured token registry is unusable; raised at startup."""
    def __init__(self, token_key, reason):
        super().__init__(f"Invalid registry entry {token_key!r}: {reason}")
        self.token_key = token_key

class TokenEntry(NamedTuple):
    token_key:       str
    token_address:   ChecksumAddress
    staking_address: ChecksumAddress
    decimals:        int
    token_name:      str
    project_name:    str
    chain:           str
    is_stablecoin:   bool
    categories:      tuple[str, ...]
    logo_url:        str

REQUIRED_FIELDS = ('token_key', 'token_address', 'staking_address', 'decimals')

def parse_address(token_key, field, value) -> ChecksumAddress:
    if not isinstance(value, str) or not eth_utils.is_address(value):
        raise RegistryError(token_key, f"{field} {value!r} is not a valid address")
    return eth_utils.to_checksum_address(value)

def parse_token_entry(raw: dict) -> TokenEntry:
    token_key = raw.get('token_key')
    for field in REQUIRED_FIELDS:
        if raw.get(field) is None:
            raise RegistryError(token_key, f"missing required field '{field}'")

    # bool is an int subclass; `decimals: True` is a typo, not a precision
    decimals = raw['decimals']
    if not isinstance(decimals, int) or isinstance(decimals, bool) or not 0 <= decimals <= 77:
        raise RegistryError(token_key, f"decimals must be an integer in [0, 77], got {decimals!r}")

    return TokenEntry(
        token_key       = token_key,
        token_address   = parse_address(token_key, 'token_address',   raw['token_address']),
        staking_address = parse_address(token_key, 'staking_address', raw['staking_address']),
        decimals        = decimals,
        token_name      = raw.get('token_name', token_key),
        project_name    = raw.get('project_name', ''),
        chain           = raw.get('chain', ''),
        is_stablecoin   = bool(raw.get('is_stablecoin', False)),
        categories      = tuple(raw.get('categories', ())),
        logo_url        = raw.get('logo_url', ''),
    )

def load_registry(raw_entries: Iterable[dict]) -> tuple[TokenEntry, ...]:
    """
    Validates the configured token list and returns it as an immutable tuple of `TokenEntry`.

    Token keys and token addresses must both be unique: the token address is the primary key of the
    persisted staking records, so two entries sharing one would overwrite each other's snapshot.
    """
    entries = tuple(parse_token_entry(raw) for raw in raw_entries)

    seen_keys      = set()
    seen_addresses = set()
    for entry in entries:
        if entry.token_key in seen_keys:
            raise RegistryError(entry.token_key, "duplicate token_key")
        if entry.token_address in seen_addresses:
            raise RegistryError(entry.token_key, f"duplicate token_address {entry.token_address}")
        seen_keys.add(entry.token_key)
        seen_addresses.add(entry.token_address)

    return entries
