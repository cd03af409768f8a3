"""BillPay backend: identity, session tokens and password resets."""
