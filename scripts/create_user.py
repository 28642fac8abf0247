"""Create a user directly in the database (e.g. the first admin).

Usage:
  python scripts/create_user.py --email admin@example.com --username admin \
      --name "Platform Admin" --password '...' --role admin

Recruiters need --company-id of an existing company.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from careers_api import create_app
from models.schemas.user import UserCreateSchema, UserOutSchema
from utils.accounts import create_user


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--email", required=True)
    ap.add_argument("--username", required=True)
    ap.add_argument("--name", required=True)
    ap.add_argument("--password", required=True)
    ap.add_argument("--role", choices=["admin", "recruiter", "candidate"], default="candidate")
    ap.add_argument("--company-id", default=None)
    args = ap.parse_args()

    app = create_app()
    with app.app_context():
        try:
            data = UserCreateSchema().load(
                {
                    "email": args.email,
                    "username": args.username,
                    "name": args.name,
                    "password": args.password,
                    "role": args.role,
                    "companyId": args.company_id,
                }
            )
            user = create_user(data)
        except ValidationError as exc:
            print(f"Invalid input: {exc.messages}", file=sys.stderr)
            return 1
        except HTTPException as exc:
            print(f"Could not create user: {exc.description}", file=sys.stderr)
            return 1

        print("Created user:")
        print(UserOutSchema().dump(user))
    return 0


if __name__ == "__main__":
    sys.exit(main())
