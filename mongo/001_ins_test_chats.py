from pymongo import MongoClient
from bson import ObjectId
from datetime import datetime, timezone, timedelta
import random
import lorem
import argparse
import os
from dotenv import load_dotenv

# Build the path to the .env file located in the project root folder
env_path = os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env')
load_dotenv(dotenv_path=env_path)

# Retrieve the environment variables with fallback default values if not defined in .env
MONGODB_URI = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
MONGODB_DB = os.getenv("DATABASE_NAME", "marketplace")

# Connect to MongoDB
client = MongoClient(MONGODB_URI)
db = client[MONGODB_DB]

# Collections
chats_collection = db['chats']
messages_collection = db['messages']
users_collection = db['users']
products_collection = db['products']

MESSAGE_TYPES = ["text", "text", "text", "product_inquiry"]

def utc_now():
    # Naive UTC, millisecond precision, like the service writes
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)

def clean_existing_chats():
    """Remove all existing chats and messages"""
    chat_count = chats_collection.count_documents({})
    message_count = messages_collection.count_documents({})

    chats_collection.delete_many({})
    messages_result = messages_collection.delete_many({})

    print(f"Deleted {chat_count} chats")
    print(f"Deleted {messages_result.deleted_count} of {message_count} messages")

def generate_test_chats(clean_first=False, max_chats=10):
    # Clean existing chats if requested
    if clean_first:
        clean_existing_chats()

    products = list(products_collection.find({"seller": {"$exists": True}}))
    buyers = list(users_collection.find())

    if not products or not buyers:
        print("Need at least one product with a seller and one user in the database.")
        return

    print(f"Found {len(products)} products and {len(buyers)} users")

    created = 0
    attempts = 0
    while created < max_chats and attempts < max_chats * 10:
        attempts += 1
        product = random.choice(products)
        buyer = random.choice(buyers)
        seller_id = product["seller"]

        if buyer["_id"] == seller_id:
            continue

        participant_ids = sorted([buyer["_id"], seller_id])
        if chats_collection.find_one({"participant_ids": participant_ids, "product_id": product["_id"], "is_active": True}):
            continue

        started_at = utc_now() - timedelta(hours=random.randint(2, 48))
        chat = {
            "_id": ObjectId(),
            "participants": [
                {"user_id": buyer["_id"], "role": "buyer"},
                {"user_id": seller_id, "role": "seller"},
            ],
            "participant_ids": participant_ids,
            "product_id": product["_id"],
            "last_message": "",
            "last_message_at": started_at,
            "last_message_by": None,
            "status": "active",
            "is_active": True,
            "unread_count": {},
            "created_at": started_at,
            "updated_at": started_at,
        }

        # Generate 3-8 random messages per chat, alternating buyer and seller
        unread = {str(buyer["_id"]): 0, str(seller_id): 0}
        sent_at = started_at
        for i in range(random.randint(3, 8)):
            sender_id = buyer["_id"] if i % 2 == 0 else seller_id
            reader_id = seller_id if i % 2 == 0 else buyer["_id"]
            sent_at = sent_at + timedelta(minutes=random.randint(1, 30))

            message = {
                "_id": ObjectId(),
                "chat_id": chat["_id"],
                "sender_id": sender_id,
                "content": lorem.sentence(),
                "type": "product_inquiry" if i == 0 else random.choice(MESSAGE_TYPES),
                "read_by": [],
                "is_deleted": False,
                "created_at": sent_at,
            }

            if random.choice([True, False]):
                message["read_by"].append({
                    "user_id": reader_id,
                    "read_at": sent_at + timedelta(minutes=random.randint(1, 60))
                })
            else:
                unread[str(reader_id)] += 1

            messages_collection.insert_one(message)

            chat["last_message"] = message["content"]
            chat["last_message_at"] = sent_at
            chat["last_message_by"] = sender_id

        chat["unread_count"] = unread
        chat["updated_at"] = sent_at
        chats_collection.insert_one(chat)
        created += 1
        print(f"Created chat {chat['_id']} between buyer {buyer['_id']} and seller {seller_id}")

def verify_chat_links():
    """Verify that chats reference existing users and products"""
    invalid_chats = 0
    for chat in chats_collection.find():
        if not products_collection.find_one({"_id": chat["product_id"]}):
            invalid_chats += 1
            print(f"Invalid product reference in chat {chat['_id']}")
            continue
        for participant_id in chat["participant_ids"]:
            if not users_collection.find_one({"_id": participant_id}):
                invalid_chats += 1
                print(f"Invalid participant in chat {chat['_id']}")
                break

    if invalid_chats == 0:
        print("All chat references are valid")
    else:
        print(f"WARNING: {invalid_chats} chats have invalid references")

if __name__ == "__main__":
    # Set up command line arguments
    parser = argparse.ArgumentParser(description='Generate test chats for MongoDB')
    parser.add_argument('--clean', action='store_true',
                        help='Remove all existing chats and messages before generating new ones')
    parser.add_argument('--count', type=int, default=10,
                        help='Maximum number of chats to create')
    args = parser.parse_args()

    print(f"Connected to MongoDB at {MONGODB_URI}, using database {MONGODB_DB}")
    print("Starting chat generation process...")
    if args.clean:
        print("Clean mode activated - removing existing chats before generation")

    generate_test_chats(clean_first=args.clean, max_chats=args.count)
    print("Verifying chat links...")
    verify_chat_links()
    print("Chat generation complete!")
