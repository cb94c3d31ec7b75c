#!/usr/bin/env python3
"""
DxReasoning — Запуск API сервера

Запуск:
    python scripts/run_api.py --snapshot data/knowledge_snapshot.json
    python scripts/run_api.py --snapshot data/knowledge_snapshot.json --port 8080
    python scripts/run_api.py --host 127.0.0.1 --port 8000 --log-level DEBUG
"""

import os
import sys
import argparse
from pathlib import Path

import uvicorn

# Додаємо корінь проекту до path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def main():
    parser = argparse.ArgumentParser(description='DxReasoning API Server')
    parser.add_argument('--host', default='0.0.0.0', help='Host (default: 0.0.0.0)')
    parser.add_argument('--port', type=int, default=8000, help='Port (default: 8000)')
    parser.add_argument('--snapshot', help='Knowledge snapshot JSON (DX_SNAPSHOT_PATH)')
    parser.add_argument('--log-level', default=None, help='Log level (DX_LOG_LEVEL)')
    parser.add_argument('--deadline', type=float, default=None, help='Per-case deadline, s')
    parser.add_argument('--reload', action='store_true', help='Enable auto-reload')

    args = parser.parse_args()

    # Додаток читає конфігурацію з environment при імпорті
    if args.snapshot:
        os.environ['DX_SNAPSHOT_PATH'] = str(Path(args.snapshot).resolve())
    if args.log_level:
        os.environ['DX_LOG_LEVEL'] = args.log_level
    if args.deadline is not None:
        os.environ['DX_DEADLINE_SECONDS'] = str(args.deadline)

    print("=" * 60)
    print("🏥 DxReasoning — API Server")
    print("=" * 60)
    print(f"   Host: {args.host}")
    print(f"   Port: {args.port}")
    print(f"   Snapshot: {os.environ.get('DX_SNAPSHOT_PATH', '(not set)')}")
    print(f"   Reload: {args.reload}")
    print("=" * 60)

    if 'DX_SNAPSHOT_PATH' not in os.environ:
        print("⚠️  Knowledge snapshot не задано: /api/diagnose повертатиме 503")

    # Один процес: контроль допуску рахує випадки в межах процесу
    uvicorn.run(
        "dx_reasoning.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1,
        log_level="info",
    )


if __name__ == "__main__":
    main()
