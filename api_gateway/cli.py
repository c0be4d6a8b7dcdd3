import argparse
import json
import logging
import os

from shared.config import Settings
from shared.database import init_db, make_engine, make_session_factory

logger = logging.getLogger("avsar")


def _open_session(settings: Settings):
    # importing the routers registers every table on Base.metadata
    import api_gateway.main  # noqa: F401

    engine = make_engine(settings.database_url)
    init_db(engine)
    return make_session_factory(engine)()


def cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run("api_gateway.main:create_app", factory=True, host=args.host, port=args.port)
    return 0


def cmd_train(args) -> int:
    from feedback_service.training import run_training

    db = _open_session(Settings.from_env())
    try:
        report = run_training(db)
    finally:
        db.close()
    print(json.dumps({"success": True, "stats": report.as_dict()}, indent=2))
    return 0


def cmd_refresh(args) -> int:
    from maintenance_service.crud import refresh_data

    db = _open_session(Settings.from_env())
    try:
        results = refresh_data(db)
    finally:
        db.close()
    print(json.dumps({"success": True, "results": results.as_dict()}, indent=2))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="avsar", description="Career guidance backend.")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))
    serve.set_defaults(func=cmd_serve)

    train = sub.add_parser("train", help="Run the recommendation weight trainer once.")
    train.set_defaults(func=cmd_train)

    refresh = sub.add_parser("refresh", help="Run catalog maintenance once.")
    refresh.set_defaults(func=cmd_refresh)

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
