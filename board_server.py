#!/usr/bin/env python3
"""
Task Board Server
-----------------
JSON API over the audited board store.

Usage:
    python board_server.py --config taskboard.yaml

API:
    GET    /api/board                 → full board snapshot (export)
    GET    /api/tasks?q=<query>       → tasks matching the search query
    POST   /api/tasks                 → create task
    PUT    /api/tasks/<id>            → replace editable fields
    DELETE /api/tasks/<id>            → delete task
    POST   /api/tasks/<id>/move       → JSON body: { state: "todo"|"doing"|"done" }
    GET    /api/review-mode           → { reviewMode }
    POST   /api/review-mode           → JSON body: { reviewMode: bool }
    POST   /api/import                → board snapshot; 400 + { errors } if invalid
    GET    /api/audit?action=&task=   → filtered audit log
    GET    /api/audit/summary         → plain-text summary of the filtered log
    GET    /api/stats                 → counts + review statistics
"""

import argparse
import logging
import sys

from flask import Flask, Response, jsonify, request

from taskboard.config import BoardConfig, build_backend
from taskboard.mutations import CreateTaskInput, UpdateTaskInput
from taskboard.query import filter_tasks, parse_query
from taskboard.store import BoardStore
from taskboard.summary import audit_summary, board_stats, filter_audit, review_stats

logger = logging.getLogger("board_server")


def create_app(store: BoardStore) -> Flask:
    app = Flask(__name__)

    # ── Board ────────────────────────────────────────────────────────────────

    @app.route("/api/board")
    def api_board():
        return jsonify(store.export_state())

    @app.route("/api/tasks", methods=["GET"])
    def api_tasks():
        query = parse_query(request.args.get("q", ""))
        tasks = filter_tasks(store.tasks, query)
        return jsonify({"tasks": [t.to_dict() for t in tasks], "count": len(tasks)})

    @app.route("/api/tasks", methods=["POST"])
    def api_create_task():
        data = request.get_json(force=True, silent=True) or {}
        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            return jsonify({"error": "title is required"}), 400
        try:
            task = store.create_task(CreateTaskInput.from_dict(data))
        except (TypeError, ValueError) as e:
            return jsonify({"error": str(e)}), 400
        return jsonify({"task": task.to_dict(), "id": task.id}), 201

    @app.route("/api/tasks/<task_id>", methods=["PUT"])
    def api_update_task(task_id):
        data = request.get_json(force=True, silent=True) or {}
        if store.get(task_id) is None:
            return jsonify({"error": "Task not found"}), 404
        try:
            entry = store.update_task(task_id, UpdateTaskInput.from_dict(data))
        except (TypeError, ValueError) as e:
            return jsonify({"error": str(e)}), 400
        task = store.get(task_id)
        if task is None:
            return jsonify({"error": "Task not found"}), 404
        return jsonify({
            "task": task.to_dict(),
            "changed": entry is not None,
        })

    @app.route("/api/tasks/<task_id>", methods=["DELETE"])
    def api_delete_task(task_id):
        entry = store.delete_task(task_id)
        if entry is None:
            return jsonify({"error": "Task not found"}), 404
        return jsonify({"deleted": task_id})

    @app.route("/api/tasks/<task_id>/move", methods=["POST"])
    def api_move_task(task_id):
        data = request.get_json(force=True, silent=True) or {}
        new_state = (data.get("state") or "").strip().lower()
        if not new_state:
            return jsonify({"error": "state is required"}), 400
        if store.get(task_id) is None:
            return jsonify({"error": "Task not found"}), 404
        try:
            entry = store.move_task(task_id, new_state)
        except ValueError:
            return jsonify({"error": f"Invalid state: {new_state}"}), 400
        task = store.get(task_id)
        if task is None:
            return jsonify({"error": "Task not found"}), 404
        return jsonify({
            "task": task.to_dict(),
            "changed": entry is not None,
        })

    # ── Review mode ──────────────────────────────────────────────────────────

    @app.route("/api/review-mode", methods=["GET"])
    def api_review_mode_get():
        return jsonify({"reviewMode": store.review_mode})

    @app.route("/api/review-mode", methods=["POST"])
    def api_review_mode_set():
        data = request.get_json(force=True, silent=True) or {}
        value = data.get("reviewMode")
        if not isinstance(value, bool):
            return jsonify({"error": "reviewMode must be a boolean"}), 400
        store.set_review_mode(value)
        return jsonify({"reviewMode": store.review_mode})

    # ── Import / audit ───────────────────────────────────────────────────────

    @app.route("/api/import", methods=["POST"])
    def api_import():
        result = store.import_json(request.get_data())
        if not result.ok:
            return jsonify({"ok": False, "errors": result.messages()}), 400
        return jsonify({
            "ok": True,
            "idReplacements": [r.to_dict() for r in result.id_replacements],
            "tasks": len(store.tasks),
        })

    def _filtered_audit():
        return filter_audit(
            store.audit,
            action=request.args.get("action"),
            task_id=request.args.get("task"),
        )

    @app.route("/api/audit")
    def api_audit():
        entries = _filtered_audit()
        return jsonify({"audit": [e.to_dict() for e in entries], "count": len(entries)})

    @app.route("/api/audit/summary")
    def api_audit_summary():
        text = audit_summary(_filtered_audit(), store.tasks)
        return Response(text, mimetype="text/plain")

    @app.route("/api/stats")
    def api_stats():
        tasks = store.tasks
        stats = board_stats(tasks)
        stats["review"] = review_stats(tasks)
        return jsonify(stats)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "tasks": len(store.tasks)})

    return app


# ── Main ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    parser = argparse.ArgumentParser(description="Task Board Server")
    parser.add_argument("--config", help="Path to taskboard.yaml (overrides TASKBOARD_CONFIG)")
    parser.add_argument("--host", help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int)
    args = parser.parse_args(argv)

    cfg = BoardConfig.load(args.config)
    logging.basicConfig(
        level=getattr(logging, str(cfg.log_level).upper(), logging.INFO),
        format="%(asctime)s [taskboard] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    store = BoardStore.open(build_backend(cfg), normalize_text=cfg.normalize_text)
    app = create_app(store)

    host = args.host or cfg.host
    port = args.port or cfg.port
    logger.info(f"Serving board on http://{host}:{port} (storage={cfg.storage})")
    app.run(host=host, port=port, debug=False, threaded=True)


if __name__ == "__main__":
    main()
