#!/usr/bin/env python
"""
Run the pricing HTTP API under uvicorn with autoreload.

Usage:
    python scripts/run_api.py
    PORT=9000 python scripts/run_api.py
"""
import os
import subprocess
import sys
from pathlib import Path


def main():
    project_root = Path(__file__).parent.parent

    env = os.environ.copy()
    src_path = str(project_root / "src")
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [src_path, env.get("PYTHONPATH")]))

    port = env.get("PORT", "8000")
    cmd = [
        sys.executable, "-m", "uvicorn", "topup_pricing.api.main:app",
        "--host", "0.0.0.0", "--port", port,
        "--reload", "--reload-dir", src_path,
    ]
    print(f"Starting pricing API on port {port}: {' '.join(cmd)}")

    try:
        subprocess.run(cmd, cwd=str(project_root), env=env)
    except KeyboardInterrupt:
        print("\nAPI stopped.")


if __name__ == "__main__":
    main()
