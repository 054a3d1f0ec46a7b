"""
Example walking a whole collection page by page.

Seeds a small "events" collection, then follows next_cursor until the last
page. Requires a MongoDB server at MONGODB_URI (default localhost).
"""

import logging
import os
from datetime import datetime, timedelta

from pymongo import MongoClient

from mongopage import MongoDocumentStore, Paginator

logging.basicConfig(level=logging.INFO)

client = MongoClient(os.environ.get("MONGODB_URI", "mongodb://localhost:27017"))
db = client["mongopage_example"]

print("Seeding events...")
db["events"].drop()
start = datetime(2024, 1, 1)
db["events"].insert_many(
    [
        # Events come in pairs sharing a timestamp; _id orders each pair
        {"name": f"event-{n}", "at": start + timedelta(hours=n // 2)}
        for n in range(1, 48)
    ]
)

paginator = Paginator(MongoDocumentStore(db))

page = paginator.paginate("events", sort={"at": 1}, limit=10)
page_number = 1
while True:
    names = ", ".join(doc["name"] for doc in page.documents)
    print(f"Page {page_number} ({page.count}): {names}")
    if not page.has_more:
        break
    page = paginator.paginate("events", sort={"at": 1}, limit=10, cursor=page.next_cursor)
    page_number += 1

print("\nSame walk, newest first, through the JSON wire shape:")
cursor = None
while True:
    wire = paginator.to_wire(
        paginator.paginated_query("events", sort={"at": -1}, limit=20, cursor=cursor)
    )
    print([doc["name"] for doc in wire["results"]])
    if not wire["pagination"]["hasMore"]:
        break
    cursor = wire["pagination"]["nextCursor"]["token"]

client.close()
