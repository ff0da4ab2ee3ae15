"""User-facing error messages, keyed by error code and language."""

DEFAULT_LANGUAGE = "en"

ERROR_MESSAGES = {
    "en": {
        "MAX_ENROLLMENT_EXCEEDED": "You have already enrolled in the maximum of 7 courses this semester",
        "SCHEDULE_CONFLICT": "The class schedule conflicts with a course you are enrolled in",
        "PREREQUISITE_NOT_MET": "You have not completed the prerequisite courses",
        "CLASS_SECTION_FULL": "The class section is full",
        "CLASS_SECTION_NOT_FOUND": "The class section does not exist",
        "DROP_DEADLINE_EXCEEDED": "The drop deadline for this course has passed",
        "CANNOT_DROP_MANDATORY": "Mandatory courses cannot be dropped",
        "ENROLLMENT_NOT_FOUND": "Enrollment not found",
        "ALREADY_ENROLLED": "You are already enrolled in this course",
        "SERVICE_UNAVAILABLE": "The service is temporarily unavailable, please try again",
        "INTERNAL_ERROR": "An unexpected error occurred",
    },
    "vi": {
        "MAX_ENROLLMENT_EXCEEDED": "Sinh viên đã đăng ký tối đa 7 môn học trong học kỳ này",
        "SCHEDULE_CONFLICT": "Lịch học bị trùng với môn học đã đăng ký",
        "PREREQUISITE_NOT_MET": "Chưa hoàn thành môn học tiên quyết",
        "CLASS_SECTION_FULL": "Lớp học phần đã đầy",
        "CLASS_SECTION_NOT_FOUND": "Lớp học phần không tồn tại",
        "DROP_DEADLINE_EXCEEDED": "Đã quá hạn hủy đăng ký môn học",
        "CANNOT_DROP_MANDATORY": "Không thể hủy môn học bắt buộc",
        "ENROLLMENT_NOT_FOUND": "Không tìm thấy đăng ký",
        "ALREADY_ENROLLED": "Sinh viên đã đăng ký môn học này",
        "SERVICE_UNAVAILABLE": "Hệ thống tạm thời không khả dụng, vui lòng thử lại",
        "INTERNAL_ERROR": "Đã xảy ra lỗi hệ thống",
    },
}

def pick_language(accept_language: str | None) -> str:
    """Pick the first supported language from an Accept-Language header"""
    if not accept_language:
        return DEFAULT_LANGUAGE

    for part in accept_language.split(","):
        tag = part.split(";")[0].strip().lower()
        primary = tag.split("-")[0]
        if primary in ERROR_MESSAGES:
            return primary

    return DEFAULT_LANGUAGE

def get_error_message(error_code: str, language: str = DEFAULT_LANGUAGE, fallback: str | None = None) -> str:
    catalog = ERROR_MESSAGES.get(language, ERROR_MESSAGES[DEFAULT_LANGUAGE])
    if error_code in catalog:
        return catalog[error_code]
    return fallback or ERROR_MESSAGES[DEFAULT_LANGUAGE]["INTERNAL_ERROR"]
