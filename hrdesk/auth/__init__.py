"""Auth module — password hashing, JWT issuance, tier-based access policy."""
