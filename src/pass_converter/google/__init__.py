"""Google Wallet payload components."""
