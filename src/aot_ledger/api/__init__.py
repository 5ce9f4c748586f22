"""HTTP API for the AOT Ledger."""
