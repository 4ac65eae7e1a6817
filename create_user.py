import sys
from auth import register_account
from db_session import SessionLocal, init_db
from errors import PointsError

def create_user(email, password, session_factory=SessionLocal):
    """Creates a teacher account; returns True on success."""
    db = session_factory()
    try:
        account = register_account(db, email, password)
        print(f"✅ Success! Account '{account.email}' created.")
        return True
    except PointsError as e:
        print(f"❌ Error: {e}")
        return False
    finally:
        db.close()

if __name__ == "__main__":
    init_db()
    # Allow running from command line
    if len(sys.argv) == 3:
        ok = create_user(sys.argv[1], sys.argv[2])
    else:
        print("\nInteractive Mode:")
        e = input("Enter Email: ")
        p = input("Enter Password: ")
        ok = create_user(e, p)
    sys.exit(0 if ok else 1)
