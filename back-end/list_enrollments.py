import asyncio
import logging
import sys
from pymongo.errors import PyMongoError
from database import enrollments_collection
from tabulate import tabulate

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

async def list_enrollments(semester_id=None, limit=20, include_inactive=False):
    """List enrollments from the database"""
    query = {}
    if semester_id:
        query["semester_id"] = semester_id
    if not include_inactive:
        query["is_active"] = True

    try:
        enrollments = await enrollments_collection.find(
            query,
            {
                "_id": 0,
                "enrollment_id": 1,
                "student_id": 1,
                "section_id": 1,
                "semester_id": 1,
                "class_section.course_id": 1,
                "enrolled_at": 1,
                "is_active": 1
            }
        ).sort([("student_id", 1), ("enrolled_at", 1)]).limit(limit).to_list(limit)

        if not enrollments:
            print("No enrollments found in the database.")
            return []

        # Prepare data for display
        headers = ["Enrollment ID", "Student", "Course", "Section", "Semester", "Enrolled At", "Active"]
        rows = []

        for enrollment in enrollments:
            rows.append([
                enrollment.get("enrollment_id", "N/A"),
                enrollment.get("student_id", "N/A"),
                enrollment.get("class_section", {}).get("course_id", "N/A"),
                enrollment.get("section_id", "N/A"),
                enrollment.get("semester_id", "N/A"),
                enrollment.get("enrolled_at", "N/A"),
                "yes" if enrollment.get("is_active") else "no"
            ])

        # Display as table
        print(tabulate(rows, headers=headers, tablefmt="grid"))

        # Get total count
        count = await enrollments_collection.count_documents(query)
        if count > limit:
            print(f"\nShowing {limit} of {count} total enrollments.")
        else:
            print(f"\nTotal enrollments: {count}")

        return enrollments

    except PyMongoError as e:
        logger.error(f"Error listing enrollments: {str(e)}")
        return []

async def main():
    semester_id = sys.argv[1] if len(sys.argv) > 1 else None
    limit = 20

    print(f"Listing the first {limit} active enrollments" + (f" for semester {semester_id}:" if semester_id else ":"))
    print("-" * 50)

    await list_enrollments(semester_id, limit)

if __name__ == "__main__":
    # Run the async main function
    asyncio.run(main())
