"""HTTP layer for the AdBoost payment webhook."""
