"""
vestledger - Linear Vesting Ledger

Converts a non-transferable escrowed credit into a freely usable reward
asset over a fixed time window.

Main Components:
- Vester: deposit, continuous vesting, partial claims, early withdrawal with forfeiture
- Tokens: reward ERC20 and non-transferable escrowed token
- Deployment: wiring and validation of the token/Vester suite
- CLI: operator commands over a JSON state file
"""

__version__ = "0.1.0"
__author__ = "vestledger Development Team"

__all__ = []
