"""Telesales CRM command line.

Usage:
  # Run the HTTP API
  python crm.py serve --port 8000

  # Create tables without Alembic (dev / first run)
  python crm.py init-db

  # Create an admin account
  python crm.py create-user --username boss --password secret1 --role admin

  # Import a CSV of calls, round-robin over active agents
  python crm.py import orders.csv

  # KPI block for a day, optionally for one agent
  python crm.py stats --day 2026-03-03 --agent alice

  # Agent leaderboard
  python crm.py leaderboard
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import uvicorn
from dateutil import parser as date_parser

import settings
from api.security import hash_password
from db.connection import create_tables, dispose_engine, get_db
import db.repositories.analytics as analytics_repo
import db.repositories.users as users_repo
from errors import CrmError, NotFoundError
from workflow import importer

logger = logging.getLogger(__name__)


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


async def run_init_db() -> None:
    await create_tables()
    logger.info("Tables created at %s", settings.database_url())


async def run_create_user(username: str, password: str, role: str) -> None:
    async with get_db() as db:
        user = await users_repo.create(
            db, username=username, password_hash=hash_password(password), role=role
        )
        _print_json({"id": user.id, "username": user.username, "role": user.role})


async def run_import(path: Path) -> None:
    text = path.read_text(encoding="utf-8")
    async with get_db() as db:
        agents = await users_repo.list_agents(db, active_only=True)
        if not agents:
            logger.warning("No active agents; imported calls will be unassigned")
        summary = await importer.import_csv(db, text, agents)
    _print_json(summary.to_dict())


async def run_stats(day_text: Optional[str], agent_name: Optional[str]) -> None:
    day = date_parser.parse(day_text).date() if day_text else None
    async with get_db() as db:
        agent_id = None
        if agent_name:
            agent = await users_repo.get_by_username(db, agent_name)
            if agent is None:
                raise NotFoundError("Agent", agent_name)
            agent_id = agent.id
        stats = await analytics_repo.get_dashboard_stats(db, day=day, agent_id=agent_id)
    _print_json(stats.model_dump(mode="json"))


async def run_leaderboard() -> None:
    async with get_db() as db:
        rows = await analytics_repo.get_agent_performance(db)
    _print_json([row.model_dump(mode="json") for row in rows])


def run_serve(host: str, port: int, reload: bool) -> None:
    uvicorn.run("api:create_app", factory=True, host=host, port=port, reload=reload)


async def _run(coro) -> None:
    try:
        await coro
    finally:
        await dispose_engine()


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Telesales CRM")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=settings.HOST)
    serve.add_argument("--port", type=int, default=settings.PORT)
    serve.add_argument("--reload", action="store_true")

    sub.add_parser("init-db", help="Create database tables")

    user = sub.add_parser("create-user", help="Create an admin or agent account")
    user.add_argument("--username", required=True)
    user.add_argument("--password", required=True)
    user.add_argument("--role", choices=["admin", "agent"], default="agent")

    imp = sub.add_parser("import", help="Bulk import calls from a CSV file")
    imp.add_argument("file", type=Path)

    stats = sub.add_parser("stats", help="Dashboard KPIs for one day")
    stats.add_argument("--day", help="Calendar day, e.g. 2026-03-03 (default: today)")
    stats.add_argument("--agent", help="Limit to one agent's username")

    sub.add_parser("leaderboard", help="Per-agent performance")

    return parser


def main(argv=None) -> int:
    settings.configure_logging()
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "serve":
            run_serve(args.host, args.port, args.reload)
        elif args.command == "init-db":
            asyncio.run(_run(run_init_db()))
        elif args.command == "create-user":
            asyncio.run(_run(run_create_user(args.username, args.password, args.role)))
        elif args.command == "import":
            asyncio.run(_run(run_import(args.file)))
        elif args.command == "stats":
            asyncio.run(_run(run_stats(args.day, args.agent)))
        elif args.command == "leaderboard":
            asyncio.run(_run(run_leaderboard()))
        else:
            parser.print_help()
            return 1
    except CrmError as exc:
        logger.error("%s", exc.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
