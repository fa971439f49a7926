"""Sessions, logins and role gates."""
