"""starkpay_reconciler - reconciles Starknet payment gateway events into the orders/payments store."""

__version__ = "0.1.0"
