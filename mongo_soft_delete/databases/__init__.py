from mongo_soft_delete.databases.mongodb import mongodb, MongoDB
from mongo_soft_delete.databases.memory import InMemoryCollection, InMemoryCursor

__all__ = ["mongodb", "MongoDB", "InMemoryCollection", "InMemoryCursor"]
