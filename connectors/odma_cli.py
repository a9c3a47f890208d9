#!/usr/bin/env python3
from __future__ import annotations

import argparse
import base64
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from odma.content import RemoteContent
from odma.errors import OdmaError
from odma.names import OdmaGuid, OdmaId, OdmaQName, QUERY_LANGUAGE_SQL
from odma.paging import ReferenceSequence
from odma.properties import OdmaProperty, OdmaType
from odma.session import connect_from_config

from .config import ConnectionConfig, config_from_env, load_config


def _plain(value: Any) -> Any:
    if isinstance(value, (OdmaId, OdmaQName, OdmaGuid)):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, RemoteContent):
        return {"content_id": value.content_id, "size": value.size}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def _render_property(prop: OdmaProperty) -> Any:
    """Render without triggering fetches: lazy values show as markers."""
    if prop.type is OdmaType.REFERENCE:
        if prop.multi_value:
            if prop.is_resolved and isinstance(prop.value, ReferenceSequence):
                seq = prop.value
                return {"references": seq.first_page_size, "more": seq.has_more}
            return {"references": "lazy"}
        ref_id = prop.reference_id
        return {"ref": str(ref_id) if ref_id is not None else None}
    if not prop.is_resolved:
        return "<lazy>"
    return _plain(prop.value)


def _describe(obj: Any) -> dict[str, Any]:
    core = obj.core
    return {
        "id": str(obj.id),
        "classes": [str(c) for c in obj.class_names],
        "complete": core.complete,
        "properties": {str(n): _render_property(core.get_property(n)) for n in core.property_names},
    }


def _class_tree(clazz: Any, depth: int, max_depth: int) -> dict[str, Any]:
    node: dict[str, Any] = {"name": str(clazz.qname), "aspects": [str(a.qname) for a in clazz.included_aspects]}
    if depth < max_depth:
        node["sub_classes"] = [_class_tree(sc, depth + 1, max_depth) for sc in clazz.sub_classes]
    return node


def _folder_tree(folder: Any, depth: int, max_depth: int) -> dict[str, Any]:
    node: dict[str, Any] = {"id": str(folder.id), "title": folder.title}
    if depth < max_depth:
        node["sub_folders"] = [_folder_tree(f, depth + 1, max_depth) for f in folder.sub_folders]
    return node


def _print_tree(node: dict[str, Any], children_key: str, label: str, indent: int = 0) -> None:
    pad = "  " * indent
    print(f"{pad}{node[label]}")
    for aspect in node.get("aspects", []):
        print(f"{pad}  @{aspect}")
    for child in node.get(children_key, []):
        _print_tree(child, children_key, label, indent + 1)


def _emit(payload: Any, output_format: str) -> None:
    if output_format == "json":
        print(json.dumps(payload, sort_keys=True, default=str))
        return
    print(payload)


def _fail(message: str, output_format: str, *, code: int = 1) -> None:
    payload = {"status": "error", "error": message, "exit_code": code}
    _emit(payload if output_format == "json" else message, output_format)
    raise SystemExit(code)


def _resolve_config(args: argparse.Namespace) -> ConnectionConfig:
    base = load_config(Path(args.config)) if args.config else config_from_env()
    return ConnectionConfig(
        endpoint=args.endpoint or base.endpoint,
        username=args.username or base.username,
        password_env=args.password_env or base.password_env,
        timeout_s=base.timeout_s,
        trace_level=args.trace_level if args.trace_level is not None else base.trace_level,
    )


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Browse a remote document repository")
    parser.add_argument("--config", default=os.getenv("ODMA_CONFIG"), help="yaml connection config")
    parser.add_argument("--endpoint")
    parser.add_argument("--username")
    parser.add_argument("--password-env", help="name of the env var holding the password")
    parser.add_argument("--trace-level", type=int, choices=[0, 1, 2, 3])
    parser.add_argument("--log-level", default=os.getenv("ODMA_LOG_LEVEL", "WARNING"))
    parser.add_argument("--format", choices=["json", "text"], default="json")

    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("info", help="Show service descriptor")

    p_get = sub.add_parser("get", help="Fetch one object")
    p_get.add_argument("--repo", required=True)
    p_get.add_argument("--id", required=True)
    p_get.add_argument("--property", action="append", default=[], help="qualified property name (repeatable)")
    p_get.add_argument("--all", action="store_true", help="fetch every property")

    p_classes = sub.add_parser("classes", help="Print the class hierarchy")
    p_classes.add_argument("--repo", required=True)
    p_classes.add_argument("--max-depth", type=int, default=10)

    p_folders = sub.add_parser("folders", help="Print the folder tree")
    p_folders.add_argument("--repo", required=True)
    p_folders.add_argument("--max-depth", type=int, default=10)

    p_search = sub.add_parser("search", help="Run a query")
    p_search.add_argument("--repo", required=True)
    p_search.add_argument("--language", default=str(QUERY_LANGUAGE_SQL))
    p_search.add_argument("--query", required=True)

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        cfg = _resolve_config(args)
        session = connect_from_config(cfg)
    except (OdmaError, ValueError) as exc:
        _fail(str(exc), args.format, code=2)

    try:
        try:
            if args.cmd == "info":
                _emit(
                    {
                        "opendma_version": session.opendma_version,
                        "service_version": session.service_version,
                        "repositories": [str(r) for r in session.repository_ids],
                        "query_languages": [str(q) for q in session.supported_query_languages],
                    },
                    args.format,
                )
            elif args.cmd == "get":
                obj = session.get_object(args.repo, args.id, args.property or None)
                if args.all:
                    obj.prepare_properties([], refresh=False)
                _emit(_describe(obj), args.format)
            elif args.cmd == "classes":
                repo = session.get_repository(args.repo)
                tree = _class_tree(repo.root_class, 0, args.max_depth)
                if args.format == "json":
                    _emit(tree, args.format)
                else:
                    _print_tree(tree, "sub_classes", "name")
            elif args.cmd == "folders":
                repo = session.get_repository(args.repo)
                root = repo.root_folder
                if root is None:
                    _fail(f"repository {args.repo} has no root folder", args.format, code=1)
                tree = _folder_tree(root, 0, args.max_depth)
                if args.format == "json":
                    _emit(tree, args.format)
                else:
                    _print_tree(tree, "sub_folders", "title")
            elif args.cmd == "search":
                result = session.search(args.repo, args.language, args.query)
                _emit({"size": result.size, "items": [_describe(o) for o in result.objects]}, args.format)
            else:
                _fail(f"unknown cmd: {args.cmd}", args.format, code=2)
        except SystemExit:
            raise
        except OdmaError as exc:
            _fail(str(exc), args.format, code=1)
    finally:
        session.close()


if __name__ == "__main__":
    main()
