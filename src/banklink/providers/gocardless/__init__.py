"""GoCardless Bank Account Data adapter."""
