#!/usr/bin/env python3
"""AD Browser Development Server"""
import os
import sys
import argparse
import socket
from pathlib import Path

import yaml


def load_config(config_file: Path) -> dict:
    """Read config.yaml, creating it with defaults when missing."""
    default_config = {"port": 8000, "host": "127.0.0.1", "backend": "demo"}

    if not config_file.exists():
        try:
            with open(config_file, "w") as f:
                yaml.dump(default_config, f)
            print(f"Created default configuration: {config_file}")
        except OSError as e:
            print(f"Warning: Could not create config file: {e}")
        return default_config

    try:
        with open(config_file, "r") as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        print(f"Warning: Could not read config file: {e}")
        return default_config
    return {**default_config, **config}


def main():
    root_dir = Path(__file__).parent.resolve()
    backend_dir = root_dir / "backend"
    config = load_config(root_dir / "config.yaml")

    parser = argparse.ArgumentParser(description="AD Browser Development Server")
    parser.add_argument("--host", default=config["host"], help=f"Host to bind (default: {config['host']})")
    parser.add_argument("--port", "-p", type=int, default=config["port"], help=f"Port to bind (default: {config['port']})")
    parser.add_argument(
        "--backend", "-b",
        choices=["demo", "dscl", "network"],
        default=config["backend"],
        help=f"Directory backend (default: {config['backend']})",
    )
    parser.add_argument("--reload", "-r", action="store_true", help="Enable auto-reload")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug mode")
    args = parser.parse_args()

    # Settings are read from the environment when adbrowser.config is imported
    os.environ["ADB_BACKEND"] = args.backend
    if args.debug:
        os.environ["ADB_DEBUG"] = "true"

    os.chdir(backend_dir)
    sys.path.insert(0, str(backend_dir))

    print("=" * 50)
    print("AD Browser Development Server")
    print("=" * 50)
    print(f"  Host: {args.host}")
    print(f"  Port: {args.port}")
    print(f"  Backend: {args.backend}")
    print(f"  Reload: {args.reload}")
    print(f"  Debug: {args.debug}")
    print("=" * 50)
    print(f"\n  → http://{args.host}:{args.port}/docs (Swagger UI)")
    print("\n  Press Ctrl+C to stop\n")

    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind((args.host, args.port))
    except OSError:
        print(f"\n  ✗ ERROR: port {args.port} is already in use")
        print(f"    Use another port: python run.py -p {args.port + 1}\n")
        sys.exit(1)
    finally:
        sock.close()

    import uvicorn
    try:
        uvicorn.run(
            "adbrowser.main:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level="info",
            access_log=True,
            use_colors=False,
        )
    except KeyboardInterrupt:
        pass

    print("\nStopped.")


if __name__ == "__main__":
    main()
