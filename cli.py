from __future__ import annotations

import argparse
import json
import os
import sys

import uvicorn

from archscan import log
from archscan.catalogue import default_config
from archscan.config import ScanConfig
from archscan.engine import analyze
from archscan.errors import FatalConfigError


def load_config(args: argparse.Namespace) -> ScanConfig:
	root = os.path.abspath(args.path)
	overrides = {"workers": args.workers, "max_depth": args.max_depth}
	if args.config:
		return ScanConfig.from_file(args.config, root=root, **overrides)
	return default_config(root, **overrides)


def cmd_analyze(args: argparse.Namespace) -> None:
	log.configure(args.log_level)
	config = load_config(args)
	try:
		run = analyze(config)
	except FatalConfigError as exc:
		print(f"error: {exc}", file=sys.stderr)
		sys.exit(2)
	print(json.dumps(run.model_dump(mode="json"), indent=2, ensure_ascii=False))


def cmd_serve(args: argparse.Namespace) -> None:
	log.configure(args.log_level)
	uvicorn.run("api:app", host=args.host, port=args.port, reload=args.reload)


def main() -> None:
	parser = argparse.ArgumentParser(prog="archscan")
	parser.add_argument("--log-level", default=None, help="Override ARCHSCAN_LOG_LEVEL")
	sub = parser.add_subparsers(dest="cmd", required=True)

	pa = sub.add_parser("analyze", help="Analyze a codebase and print the architecture model as JSON")
	pa.add_argument("path", help="Path to codebase root")
	pa.add_argument("--config", help="JSON scan configuration; defaults to the built-in catalogue")
	pa.add_argument("--workers", type=int, default=None)
	pa.add_argument("--max-depth", type=int, default=None)
	pa.set_defaults(func=cmd_analyze)

	ps = sub.add_parser("serve", help="Run FastAPI server")
	ps.add_argument("--host", default="127.0.0.1")
	ps.add_argument("--port", type=int, default=8000)
	ps.add_argument("--reload", action="store_true")
	ps.set_defaults(func=cmd_serve)

	args = parser.parse_args()
	args.func(args)


if __name__ == "__main__":
	main()
