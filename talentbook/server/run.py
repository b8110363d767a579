#!/usr/bin/env python3
"""
Run the sync server
"""
import argparse
import os
import secrets

import uvicorn

from . import crud
from .database import DATABASE_URL, SessionLocal, init_db


def main(argv=None):
    parser = argparse.ArgumentParser(description='Run the talentbook sync server')
    parser.add_argument('--host', default='0.0.0.0', help='Interface to bind')
    parser.add_argument('--port', type=int, default=8000, help='Port to run on')
    parser.add_argument('--reset', action='store_true', help='Reset database before starting')
    parser.add_argument('--create-user', metavar='NAME', help='Create a user, print its token and exit')
    parser.add_argument('--reload', action='store_true', help='Reload on code changes')
    args = parser.parse_args(argv)

    # Reset database if requested
    if args.reset and DATABASE_URL.startswith("sqlite:///"):
        db_path = DATABASE_URL[len("sqlite:///"):]
        if os.path.exists(db_path):
            os.remove(db_path)
            print(f"✓ Removed {db_path}")

    if args.create_user:
        init_db()
        db = SessionLocal()
        try:
            user = crud.create_user(db, api_token=secrets.token_urlsafe(32), name=args.create_user)
            print(f"✓ Created user {user.name} (id {user.id})")
            print(f"  Token: {user.api_token}")
        finally:
            db.close()
        return

    uvicorn.run(
        "talentbook.server.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info"
    )


if __name__ == "__main__":
    main()
