"""
Session persistence for Interview Agent sessions.

This module provides the storage collaborator the session agent uses at session
boundaries: loading a session that is not active in memory and saving sessions
when they are retired.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Optional

import pymongo
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from interview_agent.models.state import Session

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Storage for sessions outside active memory."""

    @abstractmethod
    async def load_session(self, session_id: str) -> Optional[Session]:
        """Return the stored session, or None if it was never saved."""

    @abstractmethod
    async def save_session(self, session: Session) -> bool:
        """Insert or replace the stored copy of ``session``."""

    @abstractmethod
    async def delete_session(self, session_id: str) -> bool:
        """Remove the stored copy of a session."""

    async def close(self):
        """Release any resources held by the store."""


class InMemorySessionStore(SessionStore):
    """Process-local store for development and tests."""

    def __init__(self):
        self._sessions: Dict[str, Dict] = {}

    async def load_session(self, session_id: str) -> Optional[Session]:
        document = self._sessions.get(session_id)
        return Session.model_validate(document) if document else None

    async def save_session(self, session: Session) -> bool:
        self._sessions[session.session_id] = session.model_dump(mode="json")
        return True

    async def delete_session(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None


class MongoSessionStore(SessionStore):
    """Stores sessions in MongoDB, one document per session."""

    def __init__(
        self,
        connection_uri: str,
        database_name: str = "interview_agent",
        collection_name: str = "interview_sessions",
        client: Optional[AsyncIOMotorClient] = None,
    ):
        """
        Initialize the session store.

        Args:
            connection_uri: MongoDB connection URI
            database_name: Name of the database
            collection_name: Name of the collection for sessions
            client: Existing motor client to reuse
        """
        self.connection_uri = connection_uri
        self.database_name = database_name
        self.collection_name = collection_name

        self._owns_client = client is None
        self.client = client or AsyncIOMotorClient(
            connection_uri,
            maxPoolSize=50,
            minPoolSize=5,
            maxIdleTimeMS=30000,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=10000,
            socketTimeoutMS=20000,
        )
        self.db = self.client[database_name]
        self.collection = self.db[collection_name]
        logger.info(f"Session store initialized for {database_name}.{collection_name}")

    async def setup(self):
        """Create the indexes the store relies on."""
        try:
            await self.collection.create_index([("session_id", pymongo.ASCENDING)], unique=True)
            await self.collection.create_index([("last_active", pymongo.DESCENDING)])
        except PyMongoError as e:
            logger.warning(f"Index creation warning (may already exist): {e}")

    async def load_session(self, session_id: str) -> Optional[Session]:
        document = await self.collection.find_one({"session_id": session_id}, projection={"_id": False})
        if not document:
            return None
        logger.info(f"Loaded session {session_id} from MongoDB")
        return Session.model_validate(document)

    async def save_session(self, session: Session) -> bool:
        document = session.model_dump(mode="json")
        document["last_active"] = session.last_active
        document["saved_at"] = datetime.now()
        result = await self.collection.replace_one({"session_id": session.session_id}, document, upsert=True)
        logger.info(f"Saved session {session.session_id} (stage {session.current_stage.value})")
        return result.acknowledged

    async def delete_session(self, session_id: str) -> bool:
        result = await self.collection.delete_one({"session_id": session_id})
        if result.deleted_count > 0:
            logger.info(f"Deleted session {session_id}")
            return True
        logger.warning(f"Session {session_id} not found for deletion")
        return False

    async def close(self):
        """Close the MongoDB connection."""
        if self._owns_client and self.client:
            self.client.close()
            logger.info("MongoDB connection closed")
