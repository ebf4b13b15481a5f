"""Integer ids from an atomic per-collection counter."""

from pymongo import ReturnDocument

from imaginer.models.sequence import Sequence


async def next_id(name: str) -> int:
    doc = await Sequence.get_motor_collection().find_one_and_update(
        {"_id": name},
        {"$inc": {"value": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return doc["value"]
