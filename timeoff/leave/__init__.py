"""Leave requests: calendar math, balance ledger, overlap checks, lifecycle, decisions."""
