"""
Standard type definitions for database models.

Provides consistent types for monetary and percentage fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for amounts, balances, rewards
# Precision: 18 digits total, 8 after decimal point
MoneyType = DECIMAL(18, 8)

# Percentage type for commission and tax rates
# Range: 0.00 to 999.99
PercentType = DECIMAL(5, 2)
