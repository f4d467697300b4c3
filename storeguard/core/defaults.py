"""
Monitored records of the tutoring dashboard and their safe defaults.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from .registry import MonitoredRecordConfig, Registry, is_list, schema_validator


class UserRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    full_name: str
    email: str
    role: str


class HomeworkRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    studentId: str
    teacherId: str
    title: str
    status: str
    grade: Optional[int] = None


# Demo accounts; password is "demo123" for all of them
DEFAULT_USERS = [
    {
        "id": "1",
        "full_name": "Şeyda Açıker",
        "email": "seyda.aciker@gmail.com",
        "password": "demo123",
        "role": "teacher",
        "avatar": "https://ui-avatars.com/api/?name=Seyda+Aciker&background=1C2A5E&color=fff"
    },
    {
        "id": "2",
        "full_name": "Ali Efe İnaç",
        "email": "ali@student.com",
        "password": "demo123",
        "role": "student",
        "is_premium": True,
        "parentId": "3",
        "avatar": "https://ui-avatars.com/api/?name=Ali+Efe"
    },
    {
        "id": "3",
        "full_name": "Ali'nin Velisi",
        "email": "veli@parent.com",
        "password": "demo123",
        "role": "parent",
        "childId": "2",
        "avatar": "https://ui-avatars.com/api/?name=Veli"
    },
    {
        "id": "4",
        "full_name": "Zehra Yılmaz",
        "email": "zehra@student.com",
        "password": "demo123",
        "role": "student",
        "is_premium": False,
        "avatar": "https://ui-avatars.com/api/?name=Zehra"
    },
]

DEFAULT_HOMEWORKS = [
    {
        "id": "hw1",
        "studentId": "2",
        "teacherId": "1",
        "title": "Çarpanlar ve Katlar",
        "description": "Sayfa 45-50 arası çözülecek.",
        "status": "delivered",
        "grade": 95,
        "feedback": "Harika iş çıkardın!",
        "dueDate": "2024-05-20",
        "createdAt": "2024-05-15",
        "fileUrl": "#"
    },
    {
        "id": "hw2",
        "studentId": "2",
        "teacherId": "1",
        "title": "Üslü İfadeler",
        "description": "Test 3 çözülecek.",
        "status": "pending",
        "dueDate": "2024-05-25",
        "createdAt": "2024-05-21"
    },
]


def build_default_registry() -> Registry:
    """Registry of every record the dashboard keeps in the shared store."""
    return Registry([
        MonitoredRecordConfig(
            key="app_users",
            default_value=DEFAULT_USERS,
            is_required=True,
            validate=schema_validator(List[UserRecord], non_empty=True)
        ),
        MonitoredRecordConfig(
            key="app_homeworks",
            default_value=DEFAULT_HOMEWORKS,
            is_required=False,
            validate=schema_validator(List[HomeworkRecord])
        ),
        MonitoredRecordConfig(key="app_appointments", default_value=[], is_required=False, validate=is_list),
        MonitoredRecordConfig(key="app_videos", default_value=[], is_required=False, validate=is_list),
        MonitoredRecordConfig(key="app_notifications", default_value=[], is_required=False, validate=is_list),
        MonitoredRecordConfig(key="app_calendar_events", default_value=[], is_required=False, validate=is_list),
        MonitoredRecordConfig(key="app_flashcard_decks", default_value=[], is_required=False, validate=is_list),
        MonitoredRecordConfig(key="app_chat_messages", default_value=[], is_required=False, validate=is_list),
    ])
