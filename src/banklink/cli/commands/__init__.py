"""CLI command modules for BankLink."""
