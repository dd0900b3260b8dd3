"""Column types that work on Postgres and on the SQLite test database."""
from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB

# Arrays of strings (tags, image urls) stored as JSON, JSONB on Postgres
JSONList = JSON().with_variant(JSONB(), "postgresql")
