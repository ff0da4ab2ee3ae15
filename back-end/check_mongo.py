"""
MongoDB Connection Test Script

This script tests the connection to MongoDB, verifies that the database
configured in database.py is accessible and reports on the collections and
indexes the enrollment service relies on.
"""

import asyncio
import sys
import traceback

from pymongo.errors import PyMongoError

from database import MONGO_DETAILS, INDEXES, client, database, index_label

async def test_connection():
    """Test the MongoDB connection and verify database access."""
    print(f"Loaded database configuration: {MONGO_DETAILS}")
    print("\n=== Testing MongoDB Connection ===")
    try:
        # Ping the server to check connection
        await client.admin.command('ping')
        print("✅ Successfully connected to MongoDB!")

        # Check if our specific database exists
        db_list = await client.list_database_names()
        db_name = database.name
        if db_name in db_list:
            print(f"✅ Database '{db_name}' exists")
        else:
            print(f"❌ Warning: Database '{db_name}' doesn't exist yet")

        collections = await database.list_collection_names()
        print(f"\nCollections in '{db_name}': {', '.join(collections) or 'none'}")

        # Check each collection and its expected indexes
        expected = {}
        for collection, keys, options in INDEXES:
            expected.setdefault(collection.name, []).append((keys, options.get("name"), index_label(collection, keys)))

        for name, indexes in expected.items():
            if name not in collections:
                print(f"❌ Warning: '{name}' collection doesn't exist")
                continue

            count = await database[name].count_documents({})
            print(f"✅ '{name}' collection exists with {count} documents")

            existing = await database[name].index_information()
            existing_keys = [info["key"] for info in existing.values()]
            for keys, index_name, label in indexes:
                if (index_name and index_name in existing) or keys in existing_keys:
                    print(f"   ✅ index {label}")
                else:
                    print(f"   ❌ missing index {label}")

    except PyMongoError as e:
        print(f"❌ Error connecting to MongoDB: {str(e)}")
        print("\nTraceback:")
        traceback.print_exc()
        return False

    return True

if __name__ == "__main__":
    print("MongoDB Connection Tester")
    print("=========================")

    # Run the async test function
    if asyncio.run(test_connection()):
        print("\n✅ MongoDB connection test completed successfully")
    else:
        print("\n❌ MongoDB connection test failed")
        print("Please check your connection string and network configuration.")
        sys.exit(1)
