from app.models.form import Form
from app.models.form_response import FormResponse
from app.models.user import User

__all__ = [
    "Form",
    "FormResponse",
    "User",
]
