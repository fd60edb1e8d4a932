"""
vestledger Core Module

Core functionality including:
- Token contracts (reward and escrowed collateral)
- Vesting accrual and the Vester lifecycle
- Suite deployment, validation and persistence
- Configuration and structured logging
"""

__all__ = []
