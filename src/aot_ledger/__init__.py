"""AOT Ledger: accomplishment/offense scoring with karma and threaded comments."""
