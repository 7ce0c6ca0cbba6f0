"""Command-line entry point for the QuizHub backend.

Usage:
    quizhub serve [--host HOST] [--port PORT] [--reload]
    quizhub create-admin --email EMAIL [--name NAME]

``create-admin`` is the only way to obtain an ADMIN account; registration
through the API always creates USER accounts.
"""

import argparse
import getpass
import logging
import sys
from typing import List, Optional

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from quizhub.config import API_HOST, API_PORT
from quizhub.core.database import SessionLocal, init_db
from quizhub.core.exceptions import ConflictError
from quizhub.core.logging_config import setup_logging
from quizhub.schemas.user import Role, normalize_email
from quizhub.utils.user_manager import UserManager

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

_email_adapter = TypeAdapter(EmailStr)


def create_admin(email: str, name: Optional[str] = None) -> int:
    """Interactively create an ADMIN user.

    Args:
        email: Email address of the new admin.
        name: Optional display name.

    Returns:
        Process exit code.
    """
    # The account must be able to pass the login request validation
    try:
        email = _email_adapter.validate_python(normalize_email(email))
    except PydanticValidationError as e:
        print(f"❌ Invalid email {email!r}: {e.errors()[0]['msg']}")
        return 1

    password = getpass.getpass("Password: ")
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"❌ Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        return 1
    if getpass.getpass("Repeat password: ") != password:
        print("❌ Passwords do not match.")
        return 1

    init_db()
    db = SessionLocal()
    try:
        user = UserManager(db).create_user(
            email=email, password=password, name=name, role=Role.ADMIN
        )
    except ConflictError as e:
        print(f"❌ {e}")
        return 1
    finally:
        db.close()

    print(f"✅ Admin {user.email} created (id: {user.user_id})")
    return 0


def serve(host: str, port: int, reload: bool) -> int:
    import uvicorn

    server_url = f"http://{host}:{port}"
    print(f"🚀 Starting QuizHub API on {server_url}")
    print(f"📚 API docs: {server_url}/docs")
    uvicorn.run("quizhub.app:app", host=host, port=port, reload=reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quizhub", description=__doc__.splitlines()[0])
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default=API_HOST)
    serve_parser.add_argument("--port", type=int, default=API_PORT)
    serve_parser.add_argument("--reload", action="store_true")

    admin_parser = subparsers.add_parser("create-admin", help="Create an ADMIN user")
    admin_parser.add_argument("--email", required=True)
    admin_parser.add_argument("--name", default=None)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    setup_logging()
    args = build_parser().parse_args(argv)

    try:
        if args.command == "serve":
            return serve(args.host, args.port, args.reload)
        return create_admin(args.email, args.name)
    except KeyboardInterrupt:
        print("\n\nInterrupted.")
        return 130
    except Exception as e:
        logger.error("Command failed: %s", e)
        raise


if __name__ == "__main__":
    sys.exit(main())
