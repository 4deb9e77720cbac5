"""Chart tracker: turns remote chart archives into catalog package records."""
