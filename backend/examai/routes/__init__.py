from .auth_routes import create_auth_routes
from .chat_routes import create_chat_routes
from .exam_routes import create_exam_routes
from .gemini_routes import create_gemini_routes
from .health_routes import create_health_routes
from .history_routes import create_history_routes
from .subjects_routes import create_subjects_routes
from .superadmin_routes import create_superadmin_routes
from .upload_routes import create_upload_routes

__all__ = [
    "create_auth_routes",
    "create_chat_routes",
    "create_exam_routes",
    "create_gemini_routes",
    "create_health_routes",
    "create_history_routes",
    "create_subjects_routes",
    "create_superadmin_routes",
    "create_upload_routes",
]
