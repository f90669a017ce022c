"""Seed the database with demo users and tasks covering every board bucket."""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import datetime, timedelta
from app.database import SessionLocal, engine, Base
import app.models  # noqa: F401

from app.models.user import User
from app.models.task import Task, TaskAssignment, TaskResource


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if db.query(User).count() > 0:
            print("Database already seeded. Skipping.")
            return

        users = [
            User(name="Alice Martin", email="alice@example.com", lang="en"),
            User(name="Bruno Petit", email="bruno@example.com", lang="fr"),
            User(name="Chloe Durand", email="chloe@example.com", lang="fr"),
        ]
        db.add_all(users)
        db.flush()

        today = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
        morning = today + timedelta(hours=9)

        tasks = [
            Task(user_id=users[0].id, title="Write sprint plan", priority="high", category="work",
                 scheduled=True, status="todo", date=today, start_time=morning,
                 end_time=morning + timedelta(hours=1), duration=60),
            Task(user_id=users[0].id, title="Review pull requests", priority="medium", category="work",
                 scheduled=True, status="inprogress", date=today + timedelta(days=1)),
            Task(user_id=users[0].id, title="Book dentist", priority="low", category="personal",
                 scheduled=False, status="unscheduled"),
            Task(user_id=users[0].id, title="Ship release notes", priority="medium", category="work",
                 scheduled=True, completed=True, status="todo", date=today - timedelta(days=1)),
        ]
        db.add_all(tasks)
        db.flush()

        subtask = Task(user_id=users[0].id, parent_id=tasks[0].id, title="Collect estimates",
                       priority="medium", category="work", scheduled=False)
        db.add(subtask)

        db.add_all([
            TaskAssignment(task_id=tasks[1].id, user_id=users[1].id),
            TaskAssignment(task_id=tasks[1].id, user_id=users[2].id),
            TaskResource(task_id=tasks[0].id, position=0, name="Roadmap", type="url",
                         category="link", url="https://example.com/roadmap"),
            TaskResource(task_id=tasks[0].id, position=1, name="Capacity notes", type="text", category="note"),
        ])

        db.commit()
        print("Seed data inserted successfully.")
        print(f"  Users: {len(users)}")
        print(f"  Tasks: {len(tasks) + 1}")
        print()
        print("Test login credentials:")
        for u in users:
            print(f"  email={u.email}  name={u.name}")

    except Exception as e:
        db.rollback()
        raise e
    finally:
        db.close()


if __name__ == "__main__":
    seed()
