"""
Liquidity Pool Snippets
=======================

Deployment and interaction helpers for the liquidity pool smart contract.

Structure:
- config: Network profiles and environment overrides
- moapy: Runner for the moapy command-line tool
- interactor: Deploy, upgrade, issue and query operations
- network: Transaction status lookups against the proxy
- watch: Scheduled read-only monitoring
- cli: Command-line entry point
"""

__version__ = "1.0.0"
__author__ = "Liquidity Pool Team"
