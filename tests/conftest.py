"""Shared pytest configuration.

Runs before any `taste_predictor` module is imported (the config is read at
import time), so the settings below apply to every test session.
"""

import os

# Cheapest bcrypt cost factor keeps the account tests fast
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-the-unit-test-suite")
