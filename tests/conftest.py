import os

# config.py reads the environment at import time
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-signing-tokens-only")
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DB_URI", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("DB_AUTO_CREATE", "false")
