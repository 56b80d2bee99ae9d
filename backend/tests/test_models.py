from app.core.database import Base
from app.models import Form, FormResponse, User


EXPECTED_TABLES = {"users", "forms", "form_responses"}


def test_all_tables_registered():
    registered = set(Base.metadata.tables.keys())
    assert EXPECTED_TABLES.issubset(registered), (
        f"Missing tables: {EXPECTED_TABLES - registered}"
    )


def test_user_columns():
    cols = {c.name for c in User.__table__.columns}
    assert cols == {
        "id", "email", "full_name", "password_hash", "is_active",
        "created_at", "updated_at",
    }


def test_form_columns():
    cols = {c.name for c in Form.__table__.columns}
    assert cols == {
        "id", "user_id", "title", "description", "questions", "settings",
        "published", "created_at", "updated_at",
    }


def test_form_response_columns():
    cols = {c.name for c in FormResponse.__table__.columns}
    assert cols == {"id", "form_id", "user_id", "answers", "submitted_at"}


def test_form_foreign_keys():
    fks = {fk.target_fullname for fk in Form.__table__.foreign_keys}
    assert fks == {"users.id"}


def test_form_response_foreign_keys():
    fks = {fk.target_fullname for fk in FormResponse.__table__.foreign_keys}
    assert fks == {"forms.id", "users.id"}


def test_form_defaults(db, user):
    form = Form(user_id=user.id, title="Defaults")
    db.add(form)
    db.commit()
    db.refresh(form)
    assert form.questions == []
    assert form.settings == {}
    assert form.published is False
    assert form.created_at is not None
