"""
Idempotent DDL for the marketplace tables.

Applied at startup when DB_AUTO_MIGRATE is on (the default). Every statement
can run against an existing database without changing data, except the
status migration which rewrites the legacy INACTIVE value to ARCHIVED.
"""

from __future__ import annotations

# Largest BIGINT/BIGSERIAL key value.
MAX_ID = 2**63 - 1

USERS = """
CREATE TABLE IF NOT EXISTS users (
    id            BIGSERIAL PRIMARY KEY,
    email         TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    name          TEXT NOT NULL,
    phone         TEXT,
    created_at    TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at    TIMESTAMPTZ NOT NULL DEFAULT now()
)
"""

CATEGORIES = """
CREATE TABLE IF NOT EXISTS categories (
    id         BIGSERIAL PRIMARY KEY,
    name       TEXT NOT NULL,
    slug       TEXT NOT NULL UNIQUE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
)
"""

LISTINGS = """
CREATE TABLE IF NOT EXISTS listings (
    id          BIGSERIAL PRIMARY KEY,
    title       TEXT NOT NULL,
    description TEXT NOT NULL,
    price       NUMERIC(8, 2) NOT NULL CHECK (price >= 0 AND price <= 999999.99),
    location    TEXT NOT NULL,
    status      TEXT NOT NULL DEFAULT 'ACTIVE'
                CHECK (status IN ('ACTIVE', 'SOLD', 'ARCHIVED')),
    user_id     BIGINT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    category_id BIGINT NOT NULL REFERENCES categories (id),
    created_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT now()
)
"""

LISTINGS_SEARCH_INDEX = """
CREATE INDEX IF NOT EXISTS idx_listings_status_created
ON listings (status, created_at DESC, id DESC)
"""

LISTINGS_OWNER_INDEX = """
CREATE INDEX IF NOT EXISTS idx_listings_user_id ON listings (user_id)
"""

LISTINGS_CATEGORY_INDEX = """
CREATE INDEX IF NOT EXISTS idx_listings_category_id ON listings (category_id)
"""

# Older data used INACTIVE for what is now ARCHIVED.
LISTINGS_STATUS_MIGRATION = """
UPDATE listings SET status = 'ARCHIVED' WHERE status = 'INACTIVE'
"""

FAVORITES = """
CREATE TABLE IF NOT EXISTS favorites (
    id         BIGSERIAL PRIMARY KEY,
    user_id    BIGINT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
    listing_id BIGINT NOT NULL REFERENCES listings (id) ON DELETE CASCADE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
)
"""

# Also covers favorites tables created before the index existed.
FAVORITES_UNIQUE = """
CREATE UNIQUE INDEX IF NOT EXISTS uq_favorites_user_listing
ON favorites (user_id, listing_id)
"""

STATEMENTS: tuple[str, ...] = (
    USERS,
    CATEGORIES,
    LISTINGS,
    LISTINGS_SEARCH_INDEX,
    LISTINGS_OWNER_INDEX,
    LISTINGS_CATEGORY_INDEX,
    LISTINGS_STATUS_MIGRATION,
    FAVORITES,
    FAVORITES_UNIQUE,
)
