# backend/rentmarket/cli/__main__.py
from __future__ import annotations

import argparse
import getpass

import uvicorn

from rentmarket.cli.seed_demo import create_admin, seed_demo
from rentmarket.config import Settings
from rentmarket.db import Database
from rentmarket.main import create_app


def main(argv: list[str] | None = None) -> None:
    p = argparse.ArgumentParser(prog="python -m rentmarket.cli")
    p.add_argument("--database-url", default=None, help="defaults to DATABASE_URL / settings")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="create all tables")

    a = sub.add_parser("create-admin", help="create or promote an admin account")
    a.add_argument("--email", required=True)
    a.add_argument("--name", default="Admin")
    a.add_argument("--phone", default="9000000000")
    a.add_argument("--password", default=None)

    s = sub.add_parser("seed-demo", help="demo admin/owner/tenant and two listings")
    s.add_argument("--no-listings", action="store_true")

    r = sub.add_parser("serve", help="run the API under uvicorn")
    r.add_argument("--host", default="127.0.0.1")
    r.add_argument("--port", type=int, default=8000)

    args = p.parse_args(argv)

    settings = Settings()
    if args.database_url:
        settings = settings.model_copy(update={"database_url": args.database_url})
    database = Database(settings.database_url)

    if args.command == "serve":
        app = create_app(settings=settings, database=database)
        # logging is already JSON-configured by create_app
        uvicorn.run(app, host=args.host, port=args.port, log_config=None)
        return

    database.create_all()

    if args.command == "init-db":
        print({"ok": True, "database_url": database.url})
        return

    with database.session() as db:
        if args.command == "create-admin":
            password = args.password or getpass.getpass("Password: ")
            user = create_admin(db, email=args.email, name=args.name, phone=args.phone, password=password)
            print({"ok": True, "user_id": user.id, "email": user.email})
        elif args.command == "seed-demo":
            out = seed_demo(db, create_listings=(not args.no_listings))
            print(
                {
                    "ok": True,
                    "admin_email": out.admin_email,
                    "owner_email": out.owner_email,
                    "tenant_email": out.tenant_email,
                    "property_ids": list(out.property_ids),
                }
            )


if __name__ == "__main__":
    main()
