from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient

from config.env import MONGO_URI, MONGO_DB_NAME


def connect_db(uri: str | None = None, db_name: str | None = None):
    """
    Open the process-wide Motor client.
    Returns (client, database); the caller owns the client lifecycle.
    """
    uri = uri or MONGO_URI
    if not uri:
        raise RuntimeError("MONGODB_URI not set")

    client = AsyncIOMotorClient(uri)
    name = db_name or MONGO_DB_NAME
    db = client[name] if name else client.get_default_database("pricewatch")
    return client, db


def close_db(client) -> None:
    if client is not None:
        client.close()


def get_db(request: Request):
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise RuntimeError("Database not initialised")
    return db
