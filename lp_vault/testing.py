"""Well-known addresses and pool figures shared by the test suite."""

from eth_utils import to_checksum_address

ADMIN = to_checksum_address("0x" + "ad" * 20)
MANAGER = to_checksum_address("0x" + "ba" * 20)
OUTSIDER = to_checksum_address("0x" + "0e" * 20)
VAULT = to_checksum_address("0x" + "aa" * 20)
LP_WHALE = to_checksum_address("0x" + "77" * 20)
ALICE = to_checksum_address("0x" + "a1" * 20)
BOB = to_checksum_address("0x" + "b0" * 20)

GENESIS = 1_700_000_000
RESERVE0 = 10_000
RESERVE1 = 5_000
LP_SUPPLY = 1_000
