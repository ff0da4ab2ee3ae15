from motor.motor_asyncio import AsyncIOMotorClient
import logging
import os
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

MONGO_DETAILS = os.getenv("MONGO_URL", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "Student_Registration")

client = AsyncIOMotorClient(MONGO_DETAILS)
database = client[MONGO_DB_NAME]

enrollments_collection = database.get_collection("Enrollments")
courses_collection = database.get_collection("Courses")
class_sections_collection = database.get_collection("ClassSections")
student_records_collection = database.get_collection("StudentRecords")
users_collection = database.get_collection("Users")
refresh_tokens_collection = database.get_collection("RefreshTokens")

# (collection, keys, options) for every index the service relies on
INDEXES = [
    (enrollments_collection, [("student_id", ASCENDING), ("semester_id", ASCENDING)], {}),
    (enrollments_collection, [("enrollment_id", ASCENDING)], {"unique": True}),
    # One active enrollment per student and section, enforced by the database
    (
        enrollments_collection,
        [("student_id", ASCENDING), ("section_id", ASCENDING)],
        {"unique": True, "partialFilterExpression": {"is_active": True}, "name": "active_student_section"}
    ),
    (courses_collection, [("course_id", ASCENDING)], {"unique": True}),
    (class_sections_collection, [("section_id", ASCENDING)], {"unique": True}),
    (class_sections_collection, [("course_id", ASCENDING)], {}),
    (student_records_collection, [("student_id", ASCENDING), ("course_id", ASCENDING)], {"unique": True}),
    (users_collection, [("username", ASCENDING)], {"unique": True}),
    (users_collection, [("user_id", ASCENDING)], {"unique": True}),
    (refresh_tokens_collection, [("token_id", ASCENDING)], {"unique": True}),
    (refresh_tokens_collection, [("user_id", ASCENDING)], {}),
]

def index_label(collection, keys) -> str:
    return f"{collection.name}.{'_'.join(key for key, _ in keys)}"

# Function to create indexes
async def create_indexes():
    logger.info("Creating database indexes...")

    index_results = {"success": [], "failed": []}
    for collection, keys, options in INDEXES:
        label = index_label(collection, keys)
        try:
            await collection.create_index(keys, **options)
            index_results["success"].append(label)
        except PyMongoError as e:
            logger.error(f"Failed to create index {label}: {str(e)}")
            index_results["failed"].append(label)

    # Log results
    logger.info(f"Successfully created {len(index_results['success'])} indexes: {', '.join(index_results['success'])}")
    if index_results["failed"]:
        logger.warning(f"Failed to create {len(index_results['failed'])} indexes: {', '.join(index_results['failed'])}")
    else:
        logger.info("All database indexes created successfully")
    return index_results

# Create the startup event handler
async def on_startup():
    try:
        await client.admin.command("ping")
        await create_indexes()
        logger.info("Connected to MongoDB!")
    except PyMongoError as e:
        logger.error(f"Failed to connect to MongoDB: {e}")
        # Don't crash the app, log and continue
        logger.warning("Enrollment requests will fail with 503 until MongoDB is reachable")

# Create shutdown event handler for cleanup
async def on_shutdown():
    client.close()
    logger.info("Closed MongoDB client")
