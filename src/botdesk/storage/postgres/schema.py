"""PostgreSQL schema definitions for the JSONB document table."""

from typing import Final

CREATE_DOCUMENTS_TABLE: Final[str] = """
CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    data JSONB NOT NULL DEFAULT '{}'::jsonb,
    seq BIGSERIAL,
    created_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (collection, id)
);
"""

CREATE_COLLECTION_INDEX: Final[str] = """
CREATE INDEX IF NOT EXISTS idx_documents_collection_seq
ON documents (collection, seq);
"""

CREATE_DATA_GIN_INDEX: Final[str] = """
CREATE INDEX IF NOT EXISTS idx_documents_data
ON documents USING GIN (data jsonb_path_ops);
"""

CREATE_UPDATED_AT_TRIGGER: Final[str] = """
CREATE OR REPLACE FUNCTION update_documents_updated_at()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = CURRENT_TIMESTAMP;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;

DROP TRIGGER IF EXISTS trigger_update_documents_updated_at ON documents;

CREATE TRIGGER trigger_update_documents_updated_at
BEFORE UPDATE ON documents
FOR EACH ROW
EXECUTE FUNCTION update_documents_updated_at();
"""

SELECT_DOCUMENT: Final[str] = """
SELECT data FROM documents WHERE collection = $1 AND id = $2
"""

UPSERT_DOCUMENT: Final[str] = """
INSERT INTO documents (collection, id, data)
VALUES ($1, $2, $3::jsonb)
ON CONFLICT (collection, id) DO UPDATE SET data = EXCLUDED.data
"""

MERGE_DOCUMENT: Final[str] = """
UPDATE documents SET data = data || $3::jsonb
WHERE collection = $1 AND id = $2
"""

DELETE_DOCUMENT: Final[str] = """
DELETE FROM documents WHERE collection = $1 AND id = $2
"""

SELECT_SERVER_TIMESTAMP: Final[str] = """
SELECT clock_timestamp()
"""

DROP_DOCUMENTS_TABLE: Final[str] = """
DROP TABLE IF EXISTS documents CASCADE;
"""
