import os

# Defaults so the app and settings import without a .env file
os.environ.setdefault("QR_TOKEN_SECRET", "test-qr-token-secret-0123456789")
os.environ.setdefault("SECRET_KEY", "x" * 32)
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_tables.db")
