import logging
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo import ReturnDocument

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


class MessageStore:
    """
    Message repository over a single MongoDB collection.

    Created once at startup and shared by every request; the underlying
    Motor client is safe for concurrent use from the event loop.
    """

    def __init__(self, collection: AsyncIOMotorCollection, client: Optional[AsyncIOMotorClient] = None):
        self.collection = collection
        self.client = client

    @classmethod
    def connect(cls, uri: str, db_name: str, collection_name: str = "messages") -> "MessageStore":
        """
        Open a Motor client and bind the store to `db_name.collection_name`.

        Motor connects lazily; call `ping()` to verify the server is reachable.
        """
        logger.debug(f"Connecting to MongoDB database {db_name!r}, collection {collection_name!r}")
        client = AsyncIOMotorClient(uri)
        return cls(client[db_name][collection_name], client=client)

    async def ping(self) -> bool:
        """Round-trip a ping command. Raises on connection failure."""
        await self.collection.database.command("ping")
        logger.debug("MongoDB ping OK")
        return True

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            logger.info("MongoDB client closed")

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_all(self) -> List[Document]:
        logger.info("Querying all messages")
        messages = await self.collection.find({}).to_list(length=None)
        logger.info(f"Retrieved {len(messages)} messages")
        return messages

    async def insert(
        self,
        sender_id: str,
        receiver_id: str,
        content: str,
        message_id: Optional[str] = None,
    ) -> Document:
        """
        Insert a new message and return it with its assigned `_id`.

        `messageID` is left out of the document when not supplied.
        """
        document: Document = {"senderID": sender_id, "receiverID": receiver_id}
        if message_id is not None:
            document["messageID"] = message_id
        document["content"] = content

        logger.info(f"Inserting message: sender={sender_id}, receiver={receiver_id}, messageID={message_id}")
        result = await self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        logger.info(f"Message inserted: _id={result.inserted_id}")
        return document

    async def find_by_sender_and_message_id(self, sender_id: str, message_id: str) -> Optional[Document]:
        logger.info(f"Looking up message: sender={sender_id}, messageID={message_id}")
        result = await self.collection.find_one({"senderID": sender_id, "messageID": message_id})
        logger.info(f"Message lookup result: {'found' if result else 'not found'}")
        return result

    async def update_content(
        self,
        sender_id: str,
        receiver_id: str,
        message_id: str,
        content: Optional[str],
    ) -> Optional[Document]:
        """
        Replace `content` on the first matching message.

        Returns the post-update document, or None when nothing matched.
        With `content` of None nothing is modified and the current document
        is returned.
        """
        query = {"senderID": sender_id, "receiverID": receiver_id, "messageID": message_id}
        logger.info(f"Updating message: {query}")

        if content is None:
            logger.debug("No content supplied, returning current document")
            return await self.collection.find_one(query)

        return await self.collection.find_one_and_update(
            query,
            {"$set": {"content": content}},
            return_document=ReturnDocument.AFTER,
        )

    async def delete(self, sender_id: str, receiver_id: str, message_id: str) -> Optional[Document]:
        """Remove the first matching message and return it, or None."""
        query = {"senderID": sender_id, "receiverID": receiver_id, "messageID": message_id}
        logger.info(f"Deleting message: {query}")
        return await self.collection.find_one_and_delete(query)

    async def find_conversation(self, sender_id: str, receiver_id: str) -> List[Document]:
        """Messages exchanged between two parties, in either direction."""
        logger.info(f"Querying conversation between {sender_id} and {receiver_id}")
        messages = await self.collection.find({
            "$or": [
                {"senderID": sender_id, "receiverID": receiver_id},
                {"senderID": receiver_id, "receiverID": sender_id},
            ]
        }).to_list(length=None)
        logger.info(f"Retrieved {len(messages)} messages")
        return messages

    async def find_for_receiver(self, receiver_id: str) -> List[Document]:
        logger.info(f"Querying messages for receiver {receiver_id}")
        messages = await self.collection.find({"receiverID": receiver_id}).to_list(length=None)
        logger.info(f"Retrieved {len(messages)} messages")
        return messages
