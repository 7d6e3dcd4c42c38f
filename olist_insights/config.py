import os
from sqlalchemy import create_engine
from dotenv import load_dotenv

load_dotenv()

PGHOST   = os.getenv("PGHOST", "127.0.0.1")
PGPORT   = int(os.getenv("PGPORT", "5432"))
PGDB     = os.getenv("PGDATABASE", "postgres")
PGUSER   = os.getenv("PGUSER", "postgres")
PGPASS   = os.getenv("PGPASSWORD", "postgres")
PGSCHEMA = os.getenv("PGSCHEMA", "olist")

DB_URL = os.getenv(
    "DB_URL",
    f"postgresql+psycopg2://{PGUSER}:{PGPASS}@{PGHOST}:{PGPORT}/{PGDB}",
)
EXPORTS_DIR = os.getenv("EXPORTS_DIR", "exports")


def connect_args(url: str = DB_URL, schema: str = PGSCHEMA) -> dict:
    # search_path is a postgres option; other dialects get no extras
    if url.startswith("postgresql"):
        return {"options": f"-c search_path={schema},public"}
    return {}


def get_engine(url: str = DB_URL, schema: str = PGSCHEMA):
    return create_engine(url, connect_args=connect_args(url, schema), future=True)
