"""
Investment services package.
"""

from rewardledger.services.investment.package_activator import PackageActivator

__all__ = ["PackageActivator"]
