"""Seed the database with a demo user and a published sample form."""

from sqlalchemy.orm import Session

from app.core.database import SessionLocal
from app.models import Form, User
from app.services.auth import create_user, get_user_by_email
from app.services.builder.models import apply_updates, dump_question, new_question

DEMO_EMAIL = "demo@formloom.dev"
DEMO_PASSWORD = "formloom-demo"

SEED_QUESTIONS = [
    ("welcome_screen", {"title": "Customer feedback", "settings": {"buttonText": "Start"}}),
    ("short_text", {"title": "What is your name?", "required": True}),
    ("email", {"title": "Where can we reach you?"}),
    ("rating", {"title": "How would you rate our service?", "required": True}),
    (
        "multiple_choice",
        {"title": "How did you hear about us?", "options": ["Search", "Friend", "Social media"]},
    ),
    ("long_text", {"title": "Anything else you want to tell us?"}),
    ("end_screen", {"title": "Thanks for your time!", "settings": {"buttonText": "Done"}}),
]


def _build_questions() -> list[dict]:
    return [
        dump_question(apply_updates(new_question(qtype), updates))
        for qtype, updates in SEED_QUESTIONS
    ]


def seed_demo(db: Session) -> Form:
    """Insert the demo user (if missing) and one published sample form."""
    user = get_user_by_email(db, DEMO_EMAIL)
    if user is None:
        user = create_user(db, email=DEMO_EMAIL, password=DEMO_PASSWORD, full_name="Demo User")

    form = Form(
        user_id=user.id,
        title="Customer Feedback",
        description="A short sample survey",
        questions=_build_questions(),
        settings={"showProgressBar": True, "showQuestionNumbers": True, "theme": "system"},
        published=True,
    )
    db.add(form)
    db.commit()
    db.refresh(form)
    return form


def main() -> None:
    db = SessionLocal()
    try:
        form = seed_demo(db)
        user: User = form.owner
        print(f"Demo user: {user.email} / {DEMO_PASSWORD}")
        print(f"Sample form: {form.title} (id={form.id}, {len(form.questions)} questions)")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
